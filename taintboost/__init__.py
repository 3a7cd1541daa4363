"""
taintboost - endpoint classification for ML-boosted taint tracking

Decides, per data-flow node and vulnerability class, whether the node is a
known taint source/sink, an effective candidate for ML scoring, or excluded.
"""

__version__ = "1.0.0"
__author__ = "taintboost Team"

from taintboost.core.config import TaintBoostSettings

__all__ = ["__version__", "TaintBoostSettings"]
