import json
import logging
import numpy as np
import pandas as pd
import pytest
from pathlib import Path

import main
from utils import constants

SCHEMA_PATH = Path(__file__).resolve().parents[1] / "config" / "schema.json"


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        handler.close()
    root.handlers = handlers
    root.setLevel(level)


@pytest.fixture
def config_file(tmp_path):
    rng = np.random.default_rng(3)
    n = 60
    df = pd.DataFrame({'f1': rng.normal(size=n), 'f2': rng.normal(size=n), 'id': range(n)})
    df['label'] = np.where(df['f1'] + 0.5 * df['f2'] > 0, 'pos', 'neg')
    data_path = tmp_path / "toy.csv"
    df.to_csv(data_path, index=False)

    config = {
        "data": {"file_path": str(data_path), "target_column": "label", "drop_columns": ["id"]},
        "model": {"name": "SVC", "params": {"kernel": "rbf"}},
        "search": {
            "x": {"property": "C", "min": -1, "max": 1, "step": 1, "base": 10, "expression": "pow(BASE,I)"},
            "y": {"property": "gamma", "min": -1, "max": 1, "step": 1, "base": 10, "expression": "pow(BASE,I)"},
            "evaluation": "ACC",
            "refine_folds": 3,
        },
        "execution": {"num_slots": 2, "n_jobs": 1},
        "outputs": {"base_results_dir": str(tmp_path / "results"), "dpi": 60},
        "logging": {"log_to_console": False, "log_dir": str(tmp_path / "logs")},
    }
    path = tmp_path / "config.json"
    path.write_text(json.dumps(config))
    return path


def test_parse_arguments_defaults():
    args = main.parse_arguments([])
    assert args.config == "config/config.json"
    assert args.run_id is None
    assert not args.dry_run


def test_dry_run_writes_nothing(config_file, tmp_path):
    code = main.main(["--config", str(config_file), "--schema", str(SCHEMA_PATH), "--run-id", "dry", "--dry-run"])

    assert code == 0
    run_dir = tmp_path / "results_dry"
    assert not (run_dir / constants.CONFIG_DIR).exists()
    assert not (run_dir / constants.SEARCH_REPORT_DIR).exists()


def test_full_run(config_file, tmp_path):
    code = main.main(["--config", str(config_file), "--schema", str(SCHEMA_PATH), "--run-id", "t1"])

    assert code == 0
    run_dir = tmp_path / "results_t1"
    assert (run_dir / constants.CONFIG_DIR / constants.CONFIG_USED_FILE).exists()
    assert (run_dir / constants.FINAL_MODEL_DIR / constants.FINAL_MODEL_FILE).exists()
    summary = json.loads((run_dir / constants.SEARCH_REPORT_DIR / constants.SUMMARY_FILE).read_text())
    assert summary['run_id'] == "t1"
    assert summary['dataset'] == "toy"
    assert (tmp_path / "logs" / constants.LOG_FILE).exists()


def test_invalid_config_returns_error(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{}")
    assert main.main(["--config", str(path), "--schema", str(SCHEMA_PATH)]) == 1
