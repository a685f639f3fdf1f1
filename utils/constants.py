# utils/constants.py

# --- Numeric Tolerance ---
# Two grid coordinates closer than this are the same point.
SMALL = 1e-6

# --- Fidelity (cross-validation folds) ---
INITIAL_FOLDS = 2       # broad, cheap pass over the whole grid
REFINE_FOLDS = 10       # local 3x3 neighbourhood passes

# --- Search Defaults ---
DEFAULT_MAX_GRID_EXTENSIONS = 3
DEFAULT_SAMPLE_SIZE_PERCENT = 100.0
DEFAULT_NUM_SLOTS = 1
DEFAULT_SEED = 1
DEFAULT_EXPRESSION = "pow(BASE,I)"
DEFAULT_BASE = 10.0

TRAVERSAL_BY_ROW = "row-wise"
TRAVERSAL_BY_COLUMN = "column-wise"
TRAVERSALS = [TRAVERSAL_BY_ROW, TRAVERSAL_BY_COLUMN]

TASK_AUTO = "auto"
TASK_CLASSIFICATION = "classification"
TASK_REGRESSION = "regression"

# --- Result Directories ---
# Sequentially numbered for proper sorting
CONFIG_DIR = "01_RunConfiguration"          # Run config, metadata, hash
SEARCH_REPORT_DIR = "02_GridSearchReport"   # Per-pass tables, heatmaps, summary
FINAL_MODEL_DIR = "03_TrainedModel"         # Final candidate + metadata

# --- File Names ---
CONFIG_USED_FILE = "config_used.json"
CONFIG_HASH_FILE = "config_hash.txt"
RUN_METADATA_FILE = "run_metadata.json"
PASS_TABLE_FILE = "pass_performances.parquet"
GNUPLOT_FILE = "gridsearch_{metric}.gnuplot"
HEATMAP_FILE = "initial_grid_{metric}.png"
SUMMARY_FILE = "search_summary.json"
FINAL_MODEL_FILE = "final_model.pkl"
TRAINING_METADATA_FILE = "training_metadata.json"
LOG_FILE = "grid_search.log"
