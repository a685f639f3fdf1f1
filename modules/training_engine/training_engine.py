import joblib
import logging
import time
from typing import Any, Dict, Optional

from modules.base.base_engine import BaseEngine
from modules.candidate import ConfigurableCandidate
from modules.data_manager import Dataset
from utils import constants
from utils.error_handling import handle_engine_errors
from utils.exceptions import ModelTrainingError
from utils.file_io import save_json


class TrainingEngine(BaseEngine):
    """
    Trains the candidate selected by the search on the full dataset and
    optionally persists it.
    """

    def __init__(self, config: dict, logger: logging.Logger):
        super().__init__(config, logger)

    def _get_engine_directory_name(self) -> str:
        return constants.FINAL_MODEL_DIR

    @handle_engine_errors("Training")
    def execute(self, candidate: ConfigurableCandidate, dataset: Dataset,
                parameters: Optional[Dict[str, Any]] = None, run_id: str = "") -> ConfigurableCandidate:
        """
        Fit the final candidate.

        Args:
            candidate: Candidate built from the best grid point (not yet fitted).
            dataset: Full dataset.
            parameters: Tuned parameter values, recorded in the metadata.
            run_id: Run identifier.

        Returns:
            The fitted candidate.

        Raises:
            ModelTrainingError: If fitting or persisting fails.
        """
        model_name = type(candidate.estimator).__name__
        self.logger.info(
            f"Training final {model_name} on {len(dataset)} samples with {dataset.X.shape[1]} features."
        )

        start_time = time.time()
        try:
            candidate.fit(dataset.X, dataset.y)
        except Exception as e:
            raise ModelTrainingError(f"Failed to train final {model_name}: {e}") from e
        duration = time.time() - start_time
        self.logger.info(f"Training completed in {duration:.2f} seconds.")

        if self.writes_enabled and self.config.get('outputs', {}).get('save_models', True):
            self._save(candidate, dataset, parameters or {}, run_id, duration)

        return candidate

    def _save(self, candidate: ConfigurableCandidate, dataset: Dataset,
              parameters: Dict[str, Any], run_id: str, duration: float) -> None:
        model_path = self.output_dir / constants.FINAL_MODEL_FILE
        try:
            joblib.dump(candidate.estimator, model_path)
        except Exception as e:
            raise ModelTrainingError(f"Failed to persist final model to {model_path}: {e}") from e
        self.logger.info(f"Model saved to {model_path}")

        metadata = {
            'run_id': run_id,
            'model': type(candidate.estimator).__name__,
            'tuned_parameters': parameters,
            'task': dataset.task,
            'features': dataset.X.columns.tolist(),
            'input_shape': list(dataset.X.shape),
            'training_time_sec': duration,
            'timestamp': time.strftime("%Y-%m-%d %H:%M:%S"),
        }
        save_json(metadata, self.output_dir / constants.TRAINING_METADATA_FILE)
