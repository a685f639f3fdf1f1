import copy
import hashlib
import json
import logging
import os
import sys
import jsonschema
import psutil
from datetime import datetime
from pathlib import Path
from typing import Dict, Any, Optional

from modules.grid import Grid
from modules.model_factory import ModelFactory
from modules.performance import Metric, REGRESSION_ONLY_METRICS
from modules.value_mapper import CompiledExpression
from utils import constants
from utils.exceptions import ConfigurationError


DEFAULT_AXIS_X = {
    'property': 'C',
    'min': -3.0,
    'max': 3.0,
    'step': 1.0,
    'base': constants.DEFAULT_BASE,
    'expression': constants.DEFAULT_EXPRESSION,
}

DEFAULT_AXIS_Y = dict(DEFAULT_AXIS_X, property='gamma')

DEFAULTS: Dict[str, Any] = {
    'data': {
        'drop_columns': [],
        'task': constants.TASK_AUTO,
    },
    'model': {
        'params': {},
    },
    'search': {
        'x': DEFAULT_AXIS_X,
        'y': DEFAULT_AXIS_Y,
        'evaluation': 'CC',
        'grid_is_extendable': False,
        'max_grid_extensions': constants.DEFAULT_MAX_GRID_EXTENSIONS,
        'sample_size_percent': constants.DEFAULT_SAMPLE_SIZE_PERCENT,
        'traversal': constants.TRAVERSAL_BY_COLUMN,
        'initial_folds': constants.INITIAL_FOLDS,
        'refine_folds': constants.REFINE_FOLDS,
        'seed': constants.DEFAULT_SEED,
    },
    'execution': {
        'num_slots': constants.DEFAULT_NUM_SLOTS,
        'n_jobs': 1,
    },
    'outputs': {
        'base_results_dir': 'results',
        'save_models': True,
        'save_excel_copy': False,
        'save_reports': True,
        'save_plots': True,
    },
    'logging': {
        'level': 'INFO',
        'log_to_console': True,
        'log_to_file': True,
        'colorful_console': True,
    },
}


def _merge_defaults(defaults: Dict[str, Any], config: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively fill keys missing from ``config`` with ``defaults``."""
    merged = copy.deepcopy(config)
    for key, value in defaults.items():
        if key not in merged:
            merged[key] = copy.deepcopy(value)
        elif isinstance(value, dict) and isinstance(merged[key], dict):
            merged[key] = _merge_defaults(value, merged[key])
    return merged


class ConfigurationManager:
    """
    Manages configuration loading, validation, and access.

    Validation runs in three stages: JSON schema, logical rules (every axis
    must form a valid grid and its expression must compile) and resource
    checks. Defaults are applied for every optional key.
    """

    def __init__(self, config_path: str = "config/config.json",
                 schema_path: str = "config/schema.json"):
        """
        Initialize the ConfigurationManager.

        Args:
            config_path (str): Path to the user configuration JSON.
            schema_path (str): Path to the JSON schema definition.
        """
        self.config_path = config_path
        self.schema_path = schema_path
        self.config: Dict[str, Any] = {}
        self.schema: Dict[str, Any] = {}
        self.run_id: Optional[str] = None
        self.logger = logging.getLogger("config_manager")

    def load_and_validate(self) -> Dict[str, Any]:
        """
        Load the config, validate it and apply defaults.

        Returns:
            Dict[str, Any]: The validated configuration with defaults filled in.

        Raises:
            ConfigurationError: If any validation step fails.
        """
        self.config = self._load_json(self.config_path)
        self.schema = self._load_json(self.schema_path)

        self._validate_schema()
        self.config = _merge_defaults(DEFAULTS, self.config)
        self._validate_logic()
        self._validate_resources()

        return self.config

    def generate_run_id(self) -> str:
        """Timestamp-based run identifier (YYYYMMDD_HHMMSS), generated once."""
        if not self.run_id:
            self.run_id = datetime.now().strftime("%Y%m%d_%H%M%S")
        return self.run_id

    def save_artifacts(self, output_dir: str) -> None:
        """
        Save configuration artifacts to the run directory.

        Saves:
        1. config_used.json: The validated config, defaults included.
        2. config_hash.txt: SHA256 hash of the config.
        3. run_metadata.json: Environment details.
        """
        config_dir = Path(output_dir) / constants.CONFIG_DIR
        config_dir.mkdir(parents=True, exist_ok=True)

        with open(config_dir / constants.CONFIG_USED_FILE, 'w') as f:
            json.dump(self.config, f, indent=2)

        config_str = json.dumps(self.config, sort_keys=True)
        config_hash = hashlib.sha256(config_str.encode()).hexdigest()
        with open(config_dir / constants.CONFIG_HASH_FILE, 'w') as f:
            f.write(config_hash)

        metadata = {
            'run_id': self.run_id,
            'start_time': datetime.now().isoformat(),
            'python_version': sys.version,
            'platform': sys.platform,
            'cpu_count': psutil.cpu_count(logical=True),
            'config_hash': config_hash,
            'working_directory': os.getcwd()
        }
        with open(config_dir / constants.RUN_METADATA_FILE, 'w') as f:
            json.dump(metadata, f, indent=2)

    def _load_json(self, path: str) -> Dict[str, Any]:
        if not os.path.exists(path):
            raise ConfigurationError(f"File not found: {path}")
        try:
            with open(path, 'r') as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON in {path}: {str(e)}")

    def _validate_schema(self) -> None:
        try:
            jsonschema.validate(instance=self.config, schema=self.schema)
        except jsonschema.ValidationError as e:
            raise ConfigurationError(f"Schema validation failed: {e.message}")

    def _validate_logic(self) -> None:
        """Logical validation of every section."""
        # --- Data Section ---
        data = self.config['data']
        for key in ['file_path', 'target_column']:
            if not data.get(key):
                raise ConfigurationError(f"Data '{key}' must be specified and non-empty.")
        if data['task'] not in (constants.TASK_AUTO, constants.TASK_CLASSIFICATION, constants.TASK_REGRESSION):
            raise ConfigurationError(f"data.task must be auto, classification or regression, got {data['task']}")
        if data['target_column'] in data['drop_columns']:
            raise ConfigurationError(f"Target column '{data['target_column']}' cannot be dropped.")

        # --- Model Section ---
        model_name = self.config['model'].get('name')
        if model_name not in ModelFactory.get_available_models():
            raise ConfigurationError(
                f"Unknown model '{model_name}'. Available: {ModelFactory.get_available_models()}"
            )

        # --- Search Section ---
        search = self.config['search']
        x_axis, y_axis = search['x'], search['y']
        Grid(x_axis['min'], x_axis['max'], x_axis['step'],
             y_axis['min'], y_axis['max'], y_axis['step'])
        for name, axis in (('x', x_axis), ('y', y_axis)):
            if not axis.get('property'):
                raise ConfigurationError(f"search.{name}.property must be specified.")
            try:
                CompiledExpression(axis['expression'])
            except ConfigurationError as e:
                raise ConfigurationError(f"search.{name}.expression: {e}") from e

        metric = Metric.from_name(search['evaluation'])
        if data['task'] == constants.TASK_CLASSIFICATION and metric in REGRESSION_ONLY_METRICS:
            raise ConfigurationError(
                f"search.evaluation {metric.name} is undefined for classification; use ACC, KAPPA or WAUC."
            )

        if search['traversal'] not in constants.TRAVERSALS:
            raise ConfigurationError(
                f"search.traversal must be one of {list(constants.TRAVERSALS)}, got {search['traversal']}"
            )
        if search['max_grid_extensions'] < 0:
            raise ConfigurationError(f"max_grid_extensions must be >= 0, got {search['max_grid_extensions']}")
        for key in ('initial_folds', 'refine_folds'):
            if search[key] < 2:
                raise ConfigurationError(f"search.{key} must be >= 2, got {search[key]}.")
        percent = search['sample_size_percent']
        if not (0 < percent <= 100):
            raise ConfigurationError(f"sample_size_percent must be in (0, 100], got {percent}")
        if percent == 100 and search['initial_folds'] == search['refine_folds']:
            raise ConfigurationError(
                "search.refine_folds must differ from search.initial_folds when the initial pass "
                "uses the full dataset (sample_size_percent 100)."
            )

        # --- Execution Section ---
        execution = self.config['execution']
        if execution['num_slots'] < 1:
            raise ConfigurationError(f"execution.num_slots must be >= 1, got {execution['num_slots']}")
        n_jobs = execution['n_jobs']
        if n_jobs == 0 or n_jobs < -1:
            raise ConfigurationError(f"execution.n_jobs must be -1 (all cores) or a positive integer, got {n_jobs}")

    def _validate_resources(self) -> None:
        """Warn when the configured parallelism exceeds the machine."""
        cpu_count = psutil.cpu_count(logical=True) or 1
        execution = self.config['execution']

        if execution['num_slots'] > cpu_count:
            self.logger.warning(
                f"execution.num_slots ({execution['num_slots']}) exceeds the CPU count ({cpu_count}). "
                "Evaluations will compete for cores."
            )
        n_jobs = execution['n_jobs']
        workers = execution['num_slots'] * (cpu_count if n_jobs == -1 else n_jobs)
        if workers > cpu_count:
            self.logger.info(
                f"Up to {workers} concurrent fold fits (num_slots x n_jobs) on {cpu_count} CPUs."
            )
