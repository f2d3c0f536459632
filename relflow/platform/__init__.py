"""Platform adapters (process execution)."""

from relflow.platform.process import ProcessError, run

__all__ = ["ProcessError", "run"]
