"""
ML work-item extraction and the scorer boundary.

Effective sink candidates are turned into work items tagged with the
endpoint type encoding the scorer was trained on. Scoring itself happens in
an external model reached through the Scorer interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Iterable

from taintboost.endpoints.configuration import EndpointConfiguration, FlowPath
from taintboost.endpoints.types import EndpointType
from taintboost.models.base import ScoringError
from taintboost.models.graph import DataFlowNode
from taintboost.utils.logging import get_logger
from taintboost.utils.parallel import gather_with_concurrency

logger = get_logger("work_items", parent="ml")


@dataclass
class WorkItem:
    """One candidate endpoint to be scored for one endpoint type."""

    node_id: str
    endpoint_type: EndpointType
    features: dict[str, Any] = field(default_factory=dict)

    @property
    def encoding(self) -> int:
        return self.endpoint_type.encoding

    @property
    def kind(self) -> str:
        return self.endpoint_type.kind

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "node_id": self.node_id,
            "encoding": self.encoding,
            "kind": self.kind,
            "features": self.features,
        }


@dataclass
class ScoredWorkItem:
    """A work item with the score the model gave it."""

    item: WorkItem
    score: float

    def to_dict(self) -> dict[str, Any]:
        return {**self.item.to_dict(), "score": self.score}


def node_features(node: DataFlowNode) -> dict[str, Any]:
    """Structural features passed to the scorer."""
    return {
        "kind": node.kind,
        "callee_name": node.callee_name or "",
        "receiver_name": node.receiver_name or "",
        "argument_index": node.argument_index if node.argument_index is not None else -1,
        "property_name": node.property_name or "",
        "string_value": node.string_value or "",
        "enclosing_function": node.enclosing_function or "",
        "is_external_call": node.is_external_call,
        "file_path": str(node.file_path) if node.file_path else "",
    }


def extract_work_items(
    config: EndpointConfiguration,
    nodes: Iterable[DataFlowNode],
) -> list[WorkItem]:
    """
    Build work items for effective sinks that are not already known.

    Args:
        config: Query configuration
        nodes: Nodes to consider

    Returns:
        One work item per (node, relevant sink type)
    """
    items: list[WorkItem] = []
    seen: set[str] = set()
    for node in nodes:
        if node.node_id in seen:
            continue
        seen.add(node.node_id)
        if not config.is_effective_sink(node) or config.is_known_sink(node):
            continue
        features = node_features(node)
        for endpoint_type in config.relevant_sink_types:
            items.append(WorkItem(node.node_id, endpoint_type, dict(features)))
    return items


def work_items_from_paths(
    config: EndpointConfiguration,
    paths: Iterable[FlowPath],
) -> list[WorkItem]:
    """Work items for the sinks of novel flow paths."""
    novel = [p.sink for p in paths if config.sink_candidate_with_flow(p)]
    return extract_work_items(config, novel)


class Scorer(ABC):
    """External ML model scoring work items."""

    @abstractmethod
    async def score(self, items: list[WorkItem]) -> list[float]:
        """Return one score per item, in order."""
        pass


async def score_work_items(
    scorer: Scorer,
    items: list[WorkItem],
    batch_size: int = 32,
    max_concurrency: int = 4,
) -> list[ScoredWorkItem]:
    """
    Score items in batches with bounded concurrency.

    Raises:
        ValueError: If batch_size or max_concurrency is below 1
        ScoringError: If the scorer returns the wrong number of scores
    """
    if batch_size < 1:
        raise ValueError("batch_size must be at least 1")
    if max_concurrency < 1:
        raise ValueError("max_concurrency must be at least 1")
    batches = [items[i:i + batch_size] for i in range(0, len(items), batch_size)]

    def make_task(batch: list[WorkItem]):
        return lambda: scorer.score(batch)

    results = await gather_with_concurrency(max_concurrency, [make_task(b) for b in batches])

    scored: list[ScoredWorkItem] = []
    for batch, scores in zip(batches, results):
        if len(scores) != len(batch):
            raise ScoringError(
                f"Scorer returned {len(scores)} scores for a batch of {len(batch)} items"
            )
        scored.extend(ScoredWorkItem(item, float(score)) for item, score in zip(batch, scores))

    logger.info("Scored work items", items=len(scored), batches=len(batches))
    return scored
