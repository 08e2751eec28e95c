"""PharmaGuard: deterministic pharmacogenomic drug-safety risk classification."""

__version__ = "1.0.0"
