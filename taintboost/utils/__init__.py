"""Utility modules for logging and parallel execution."""

from taintboost.utils.logging import ComponentLogger, get_logger, setup_logging
from taintboost.utils.parallel import gather_with_concurrency, parallel_map

__all__ = [
    "ComponentLogger",
    "get_logger",
    "setup_logging",
    "gather_with_concurrency",
    "parallel_map",
]
