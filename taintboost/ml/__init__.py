"""Boundary to the external ML scorer."""

from taintboost.ml.work_items import (
    ScoredWorkItem,
    Scorer,
    WorkItem,
    extract_work_items,
    node_features,
    score_work_items,
    work_items_from_paths,
)

__all__ = [
    "ScoredWorkItem",
    "Scorer",
    "WorkItem",
    "extract_work_items",
    "node_features",
    "score_work_items",
    "work_items_from_paths",
]
