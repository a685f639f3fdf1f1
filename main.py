#!/usr/bin/env python
"""
Adaptive Grid Search - Main Entry Point
Tunes two hyperparameters of a scikit-learn estimator with a hill-climbing grid search.
"""
import sys
import logging
import argparse
import traceback
import random
from pathlib import Path

import numpy as np

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent))

from modules.config_manager import ConfigurationManager
from modules.logging_config import LoggingConfigurator
from modules.data_manager import DataManager
from modules.reporting_engine import ReportingEngine
from modules.search import GridSearchEngine
from utils.exceptions import GridSearchException


def parse_arguments(argv=None):
    """
    Parse command-line arguments.

    Returns:
        argparse.Namespace: Parsed command-line arguments.
    """
    parser = argparse.ArgumentParser(
        description="Adaptive two-parameter grid search with cross-validated scoring",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    parser.add_argument(
        "--config",
        type=str,
        default="config/config.json",
        help="Path to the configuration JSON file"
    )
    parser.add_argument(
        "--schema",
        type=str,
        default="config/schema.json",
        help="Path to the configuration JSON schema"
    )
    parser.add_argument(
        "--run-id",
        type=str,
        default=None,
        help="Optional run identifier (defaults to timestamp if not provided)"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose (DEBUG) logging"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate configuration and build the grid without evaluating anything"
    )
    return parser.parse_args(argv)


def setup_global_determinism(config: dict, logger: logging.Logger):
    """Seed Python and NumPy from ``search.seed``."""
    seed = config['search']['seed']
    logger.info(f"Setting Global Deterministic Seed: {seed}")
    random.seed(seed)
    np.random.seed(seed)


def validate_environment(logger: logging.Logger):
    """
    Validate the runtime environment and dependencies.

    Raises:
        RuntimeError: If critical dependencies are missing.
    """
    logger.info("Validating environment...")

    required_packages = ['pandas', 'numpy', 'sklearn', 'joblib', 'jsonschema', 'psutil']
    missing = []
    for package in required_packages:
        try:
            __import__(package)
        except ImportError:
            missing.append(package)

    if missing:
        raise RuntimeError(f"Missing required packages: {', '.join(missing)}")

    logger.info("Environment validation passed")


def setup_run_directory(config: dict, run_id: str = None, logger: logging.Logger = None):
    """
    Create the run directory.

    Returns:
        tuple: (run_dir Path, run_id string)
    """
    base_results_dir = config['outputs']['base_results_dir']
    if run_id:
        run_dir = Path(f"{base_results_dir}_{run_id}").absolute()
    else:
        run_dir = Path(base_results_dir).absolute()
        run_id = run_dir.name

    run_dir.mkdir(parents=True, exist_ok=True)
    if logger:
        logger.info(f"Run directory: {run_dir}")
    return run_dir, run_id


def main(argv=None):
    """
    Run the grid search end to end.

    Returns:
        int: Exit code (0 for success, 1 for errors, 130 when interrupted)
    """
    logger = None

    try:
        args = parse_arguments(argv)

        print("\n" + "=" * 80)
        print("    ADAPTIVE GRID SEARCH")
        print("=" * 80 + "\n")

        # ---------------------------------------------------------------
        # PHASE 0: INITIALIZATION & VALIDATION
        # ---------------------------------------------------------------
        config_manager = ConfigurationManager(config_path=args.config, schema_path=args.schema)
        config = config_manager.load_and_validate()

        logging_configurator = LoggingConfigurator(config, verbose=args.verbose)
        logging_configurator.setup()
        logger = logging_configurator.get_logger('grid_search')

        logger.info(f"Configuration loaded from: {args.config}")
        validate_environment(logger)

        config_manager.run_id = args.run_id
        run_id = config_manager.generate_run_id()
        run_dir, run_id = setup_run_directory(config, run_id=run_id, logger=logger)
        config['outputs']['base_results_dir'] = str(run_dir)

        if args.dry_run:
            config['outputs']['skip_dir_creation'] = True
        else:
            config_manager.save_artifacts(str(run_dir))

        setup_global_determinism(config, logger)
        logger.info(f"Run ID: {run_id}")

        # ---------------------------------------------------------------
        # PHASE 1: DATA LOADING
        # ---------------------------------------------------------------
        logger.info("=" * 60)
        logger.info("PHASE 1: DATA LOADING")
        logger.info("=" * 60)

        dataset = DataManager(config, logger).load()
        logger.info(f"Data loaded: {len(dataset)} samples, {dataset.X.shape[1]} features, task={dataset.task}")

        engine = GridSearchEngine(config, logger)

        if args.dry_run:
            logger.info(f"Dry run mode: grid\n{engine.grid}")
            print("\n[SUCCESS] Configuration validated successfully.")
            return 0

        # ---------------------------------------------------------------
        # PHASE 2: GRID SEARCH & FINAL TRAINING
        # ---------------------------------------------------------------
        logger.info("=" * 60)
        logger.info("PHASE 2: GRID SEARCH")
        logger.info("=" * 60)

        result = engine.execute(dataset, run_id)

        # ---------------------------------------------------------------
        # PHASE 3: REPORTING
        # ---------------------------------------------------------------
        if config['outputs'].get('save_reports', True):
            logger.info("=" * 60)
            logger.info("PHASE 3: REPORTING")
            logger.info("=" * 60)
            ReportingEngine(config, logger).execute(result, engine.metric, run_id, title=dataset.name)

        logger.info("-" * 60)
        logger.info("SEARCH COMPLETED SUCCESSFULLY")
        logger.info(f"Best point: {result.best_point} -> X={result.values[0]}, Y={result.values[1]}")
        logger.info(
            f"Extensions: {result.grid_extensions}, iterations: {result.iterations}, "
            f"uniform: {result.uniform_performance}, stop: {result.stop_reason}"
        )
        logger.info("-" * 60)

        print(f"\n[SUCCESS] Best point {result.best_point}: "
              f"X={result.values[0]}, Y={result.values[1]}. Results saved to: {run_dir}")
        return 0

    except GridSearchException as e:
        msg = f"Grid Search Error: {str(e)}"
        print(f"\n[ERROR] {msg}")
        if logger:
            logger.critical(msg, exc_info=True)
        else:
            traceback.print_exc()
        return 1

    except KeyboardInterrupt:
        print("\n[INTERRUPTED] Search interrupted by user.")
        if logger:
            logger.warning("Search interrupted by user (Ctrl+C)")
        return 130

    except Exception as e:
        msg = f"Unexpected Error: {str(e)}"
        print(f"\n[CRITICAL] {msg}")
        if logger:
            logger.critical(msg, exc_info=True)
        else:
            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
