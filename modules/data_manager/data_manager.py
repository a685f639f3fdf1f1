import pandas as pd
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from sklearn.utils import resample

from utils.exceptions import DataValidationError
from utils.file_io import read_dataframe
from utils.error_handling import handle_engine_errors
from utils import constants


@dataclass(frozen=True)
class Dataset:
    """Features, target and task type handed to the evaluator."""
    X: pd.DataFrame
    y: pd.Series
    task: str
    name: str = "dataset"

    @property
    def is_classification(self) -> bool:
        return self.task == constants.TASK_CLASSIFICATION

    def __len__(self) -> int:
        return len(self.y)


class DataManager:
    """
    Loads the search dataset and produces the low-fidelity subsample.

    - Drops configured non-feature columns.
    - Removes rows with a missing target (they cannot be scored).
    - Decides between classification and regression.
    """

    def __init__(self, config: dict, logger: logging.Logger):
        self.config = config
        self.logger = logger
        self.data_config = config.get('data', {})
        self.dataset: Optional[Dataset] = None

    @handle_engine_errors("Data Management")
    def load(self) -> Dataset:
        """
        Load the file named in ``data.file_path`` and build a Dataset.

        Raises:
            DataValidationError: If the file is missing, empty or lacks the target.
        """
        file_path = Path(self.data_config.get('file_path', ''))
        if not file_path.is_file():
            raise DataValidationError(f"Data file not found: {file_path}")

        self.logger.info(f"Loading data from {file_path}")
        df = read_dataframe(file_path)
        if df.empty:
            raise DataValidationError("Loaded dataframe is empty.")

        self.dataset = self.from_frame(df, name=file_path.stem)
        return self.dataset

    def from_frame(self, df: pd.DataFrame, name: str = "dataset") -> Dataset:
        """Build a Dataset from an in-memory DataFrame."""
        target = self.data_config.get('target_column')
        if not target or target not in df.columns:
            raise DataValidationError(f"Target column '{target}' not found in data.")

        drop_cols = [c for c in self.data_config.get('drop_columns', []) if c in df.columns and c != target]
        if drop_cols:
            self.logger.info(f"Dropping non-feature columns: {drop_cols}")
            df = df.drop(columns=drop_cols)

        # rows without a target value cannot be scored
        missing = df[target].isna()
        if missing.any():
            self.logger.warning(f"Removing {int(missing.sum())} rows with missing target '{target}'")
            df = df.loc[~missing]

        if df.empty:
            raise DataValidationError("No rows left after removing missing targets.")

        X = df.drop(columns=[target]).reset_index(drop=True)
        y = df[target].reset_index(drop=True)
        if X.shape[1] == 0:
            raise DataValidationError("No feature columns available.")

        task = self._detect_task(y)
        self.logger.info(f"Dataset '{name}': {len(y)} rows, {X.shape[1]} features, task={task}")
        return Dataset(X=X, y=y, task=task, name=name)

    def _detect_task(self, y: pd.Series) -> str:
        task = self.data_config.get('task', constants.TASK_AUTO)
        if task != constants.TASK_AUTO:
            return task
        if pd.api.types.is_numeric_dtype(y) and not pd.api.types.is_bool_dtype(y):
            return constants.TASK_REGRESSION
        return constants.TASK_CLASSIFICATION

    def subsample(self, dataset: Dataset, percent: float, seed: int) -> Dataset:
        """
        Draw a representative sample for the low-fidelity pass.

        Classification targets are stratified. 100 percent returns the
        dataset unchanged.
        """
        if percent >= 100:
            return dataset

        n_samples = max(1, int(round(len(dataset) * percent / 100.0)))
        self.logger.info(f"Generating sample ({percent}%): {n_samples} of {len(dataset)} rows")

        stratify = dataset.y if dataset.is_classification else None
        try:
            X_sample, y_sample = resample(dataset.X, dataset.y, replace=False, n_samples=n_samples,
                                          stratify=stratify, random_state=seed)
        except ValueError as e:
            self.logger.warning(f"Stratified sampling failed ({e}); falling back to random sampling.")
            X_sample, y_sample = resample(dataset.X, dataset.y, replace=False, n_samples=n_samples,
                                          random_state=seed)

        return Dataset(
            X=X_sample.reset_index(drop=True),
            y=y_sample.reset_index(drop=True),
            task=dataset.task,
            name=f"{dataset.name}_sample{percent:g}",
        )
