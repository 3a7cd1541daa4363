"""Data models for taintboost."""

from taintboost.models.base import (
    AmbiguousClassification,
    Confidence,
    ScoringError,
    SinkStatus,
    SnapshotError,
    SourceStatus,
    StructuralContractViolation,
    TaintBoostError,
)
from taintboost.models.graph import (
    DataFlowNode,
    GraphProvider,
    GraphSnapshot,
    load_snapshot,
)

__all__ = [
    # Base types
    "AmbiguousClassification",
    "Confidence",
    "SinkStatus",
    "SourceStatus",
    # Errors
    "ScoringError",
    "SnapshotError",
    "StructuralContractViolation",
    "TaintBoostError",
    # Graph
    "DataFlowNode",
    "GraphProvider",
    "GraphSnapshot",
    "load_snapshot",
]
