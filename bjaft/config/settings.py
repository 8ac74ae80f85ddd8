"""
Configuration settings for the Buckley-James AFT project.
"""

from pathlib import Path

# Project paths
PROJECT_ROOT = Path(__file__).parent.parent.parent
OUTPUT_DIR = PROJECT_ROOT / "output"
RESULTS_DIR = OUTPUT_DIR / "results"


class EstimatorConfig:
    """Default parameters for the self-consistency loop."""

    # Max absolute coefficient change that counts as converged
    TOLERANCE = 1e-3

    # Hard cap on the number of OLS refits
    MAX_ITERATIONS = 100


class SimulationConfig:
    """Configuration parameters for synthetic cohorts and Monte Carlo studies."""

    N_OBSERVATIONS = 500
    TRUE_COEFFICIENTS = (1.0, -0.5)
    INTERCEPT = 1.0
    ERROR_SCALE = 0.5

    # Target fraction of censored observations
    CENSORING_RATE = 0.3

    N_REPLICATES = 100

    # Random seed for reproducibility
    RANDOM_SEED = 42


# Column names used by the synthetic cohort generator and the CLI defaults
DEFAULT_DURATION_COL = 'time'
DEFAULT_EVENT_COL = 'event'
TRUE_TIME_COL = 'true_time'
