import pytest
import pandas as pd
import numpy as np
import logging
import json
import joblib
from unittest.mock import MagicMock, patch
from sklearn.svm import SVR

from modules.candidate import ConfigurableCandidate
from modules.data_manager import Dataset
from modules.training_engine import TrainingEngine
from utils import constants
from utils.exceptions import ModelTrainingError

# --- Fixtures ---

@pytest.fixture
def mock_logger():
    return MagicMock(spec=logging.Logger)

@pytest.fixture
def base_config(tmp_path):
    return {
        "outputs": {
            "base_results_dir": str(tmp_path),
            "save_models": True
        }
    }

@pytest.fixture
def dataset():
    rng = np.random.default_rng(0)
    X = pd.DataFrame({'f1': rng.random(30), 'f2': rng.random(30)})
    y = pd.Series(X['f1'] * 2 + X['f2'])
    return Dataset(X, y, constants.TASK_REGRESSION, "toy")

# --- Tests ---

def test_trains_and_saves(base_config, mock_logger, dataset, tmp_path):
    engine = TrainingEngine(base_config, mock_logger)
    candidate = ConfigurableCandidate(SVR(C=10.0))

    fitted = engine.execute(candidate, dataset, parameters={'C': 10.0, 'gamma': 0.1}, run_id="run_1")

    assert fitted is candidate
    model_dir = tmp_path / constants.FINAL_MODEL_DIR
    loaded = joblib.load(model_dir / constants.FINAL_MODEL_FILE)
    assert loaded.C == 10.0
    assert loaded.predict(dataset.X).shape == (30,)

    metadata = json.loads((model_dir / constants.TRAINING_METADATA_FILE).read_text())
    assert metadata['run_id'] == "run_1"
    assert metadata['model'] == "SVR"
    assert metadata['tuned_parameters'] == {'C': 10.0, 'gamma': 0.1}
    assert metadata['features'] == ['f1', 'f2']
    assert metadata['input_shape'] == [30, 2]

def test_save_models_disabled(base_config, mock_logger, dataset, tmp_path):
    base_config['outputs']['save_models'] = False
    engine = TrainingEngine(base_config, mock_logger)
    engine.execute(ConfigurableCandidate(SVR()), dataset)
    assert not (tmp_path / constants.FINAL_MODEL_DIR / constants.FINAL_MODEL_FILE).exists()

def test_fit_failure(base_config, mock_logger, dataset):
    estimator = MagicMock()
    estimator.fit.side_effect = ValueError("singular matrix")
    engine = TrainingEngine(base_config, mock_logger)

    with pytest.raises(ModelTrainingError, match="singular matrix") as excinfo:
        engine.execute(ConfigurableCandidate(estimator), dataset)
    assert isinstance(excinfo.value.__cause__, ValueError)

def test_persist_failure(base_config, mock_logger, dataset):
    engine = TrainingEngine(base_config, mock_logger)
    with patch('modules.training_engine.training_engine.joblib.dump', side_effect=OSError("disk full")):
        with pytest.raises(ModelTrainingError, match="Failed to persist"):
            engine.execute(ConfigurableCandidate(SVR()), dataset)
