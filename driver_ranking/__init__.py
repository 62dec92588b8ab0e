"""Driver ranking engine: hierarchical AHP weighting and TOPSIS ranking of drivers."""

__version__ = "1.0.0"
