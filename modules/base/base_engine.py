import abc
import logging
from pathlib import Path
from typing import Dict, Any


class BaseEngine(abc.ABC):
    """
    Abstract base class for engines that write run artifacts.

    Each engine owns one directory under ``outputs.base_results_dir``.
    Creation is skipped when ``outputs.skip_dir_creation`` is set (dry runs
    and compute-only use).
    """

    def __init__(self, config: Dict[str, Any], logger: logging.Logger):
        self.config = config
        self.logger = logger
        self.base_dir = Path(self.config.get('outputs', {}).get('base_results_dir', 'results'))
        self.output_dir = self.base_dir / self._get_engine_directory_name()
        self._setup_directories()

    @abc.abstractmethod
    def _get_engine_directory_name(self) -> str:
        """Directory name for this engine's output, e.g. '02_GridSearchReport'."""
        raise NotImplementedError("Subclasses must implement _get_engine_directory_name.")

    @property
    def writes_enabled(self) -> bool:
        return not self.config.get('outputs', {}).get('skip_dir_creation', False)

    def _setup_directories(self):
        if not self.writes_enabled:
            return
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.logger.info(f"Output directory for {self.__class__.__name__}: {self.output_dir}")

    @abc.abstractmethod
    def execute(self, *args, **kwargs) -> Any:
        """Main execution method for the engine."""
        pass
