"""relflow - Git-Flow release decisions for CI pipelines."""

__version__ = "0.1.0"
