"""Path-based mutation of Kubernetes-style objects, with schema conflict checks and match rules."""

__version__ = "0.1.0"

__all__ = [
    "match",
    "mutate",
    "mutator",
    "operations",
    "parser",
    "schema",
    "system",
    "token",
]