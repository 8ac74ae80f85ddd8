"""
Buckley-James AFT
=================

Linear regression for log-transformed, right-censored outcomes using the
Buckley-James self-consistency algorithm.

Structure:
- data/: Dataset containers, file loading and synthetic cohorts
- models/: The estimator and its least-squares / Kaplan-Meier primitives
- analysis/: Monte Carlo replication and comparison against parametric AFT fits
- utils/: Coefficient-recovery statistics
- config/: Default parameters and paths
"""

__version__ = "1.0.0"
