"""Core module containing settings and the boosting pipeline."""

from taintboost.core.config import TaintBoostSettings, validate_settings
from taintboost.core.pipeline import BoostPipeline, PipelineResult

__all__ = [
    "TaintBoostSettings",
    "validate_settings",
    "BoostPipeline",
    "PipelineResult",
]
