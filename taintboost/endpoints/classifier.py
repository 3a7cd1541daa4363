"""
Whole-graph classification.

Evaluates one configuration over every node of a snapshot and collects the
per-node outcomes, reasons and labels into a report.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Optional

from taintboost.endpoints.characteristics import applicable_characteristics
from taintboost.endpoints.configuration import EndpointConfiguration
from taintboost.endpoints.labels import (
    CHARACTERISTIC_RANGE,
    DEFAULT_REGISTRY,
    LABEL_SEPARATOR,
    LabellerRegistry,
)
from taintboost.models.base import AmbiguousClassification, SinkStatus, SourceStatus
from taintboost.models.graph import DataFlowNode, GraphProvider
from taintboost.utils.logging import get_logger
from taintboost.utils.parallel import parallel_map

logger = get_logger("classifier", parent="endpoints")


@dataclass(frozen=True)
class NodeClassification:
    """Outcome for one node under one configuration."""

    node_id: str
    source_status: SourceStatus
    sink_status: SinkStatus
    reasons: tuple[str, ...] = ()
    labels: tuple[str, ...] = ()
    ambiguity: Optional[AmbiguousClassification] = None

    @property
    def is_sink_candidate(self) -> bool:
        return self.sink_status == SinkStatus.EFFECTIVE_SINK

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "node_id": self.node_id,
            "source": self.source_status.value,
            "sink": self.sink_status.value,
            "reasons": list(self.reasons),
            "labels": list(self.labels),
            "ambiguity": self.ambiguity.to_dict() if self.ambiguity else None,
        }


@dataclass
class ClassificationReport:
    """Classification of a whole snapshot."""

    query_id: str
    classifications: list[NodeClassification] = field(default_factory=list)
    duration_ms: float = 0.0

    def with_sink_status(self, status: SinkStatus) -> list[NodeClassification]:
        return [c for c in self.classifications if c.sink_status == status]

    def with_source_status(self, status: SourceStatus) -> list[NodeClassification]:
        return [c for c in self.classifications if c.source_status == status]

    @property
    def ambiguities(self) -> list[AmbiguousClassification]:
        return [c.ambiguity for c in self.classifications if c.ambiguity is not None]

    def get(self, node_id: str) -> Optional[NodeClassification]:
        for classification in self.classifications:
            if classification.node_id == node_id:
                return classification
        return None

    def summary(self) -> dict[str, Any]:
        """Generate summary statistics."""
        sinks = {status.value: 0 for status in SinkStatus}
        sources = {status.value: 0 for status in SourceStatus}
        for c in self.classifications:
            sinks[c.sink_status.value] += 1
            sources[c.source_status.value] += 1
        return {
            "query": self.query_id,
            "nodes": len(self.classifications),
            "sinks": sinks,
            "sources": sources,
            "ambiguous": len(self.ambiguities),
            "duration_ms": round(self.duration_ms, 2),
        }

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "summary": self.summary(),
            "nodes": [c.to_dict() for c in self.classifications],
        }


class EndpointClassifier:
    """
    Applies a configuration to every node of a graph snapshot.

    Nodes are independent, so the pass is a parallel map with no locking.
    """

    def __init__(
        self,
        config: EndpointConfiguration,
        registry: LabellerRegistry = DEFAULT_REGISTRY,
        include_labels: bool = True,
        max_workers: Optional[int] = None,
    ) -> None:
        self.config = config
        self.registry = registry
        self.include_labels = include_labels
        self.max_workers = max_workers

    def classify_node(self, node: DataFlowNode) -> NodeClassification:
        sink_status = self.config.sink_status(node)
        reasons = (
            tuple(self.config.exclusion_reasons(node))
            if sink_status == SinkStatus.EXCLUDED
            else ()
        )
        labels = self._labels(node) if self.include_labels else ()
        return NodeClassification(
            node_id=node.node_id,
            source_status=self.config.source_status(node),
            sink_status=sink_status,
            reasons=reasons,
            labels=labels,
            ambiguity=self.config.find_ambiguity(node),
        )

    def _labels(self, node: DataFlowNode) -> tuple[str, ...]:
        """Registry labels plus the query's applicable refinements."""
        labels = set(self.registry.labels_for(node))
        if CHARACTERISTIC_RANGE in self.registry.ranges:
            refinements = applicable_characteristics(node, self.config.spec.sink_refinements)
            labels.update(f"{CHARACTERISTIC_RANGE}{LABEL_SEPARATOR}{c.name}" for c in refinements)
        return tuple(sorted(labels))

    def classify_graph(self, graph: GraphProvider) -> ClassificationReport:
        start = time.perf_counter()
        classifications = parallel_map(self.classify_node, graph.nodes(), self.max_workers)
        report = ClassificationReport(
            query_id=self.config.query_id,
            classifications=classifications,
            duration_ms=(time.perf_counter() - start) * 1000,
        )

        for ambiguity in report.ambiguities:
            logger.warning(ambiguity.message, query=self.config.query_id)

        summary = report.summary()
        logger.info(
            "Classified graph",
            query=self.config.query_id,
            nodes=summary["nodes"],
            known=summary["sinks"][SinkStatus.KNOWN_SINK.value],
            effective=summary["sinks"][SinkStatus.EFFECTIVE_SINK.value],
            excluded=summary["sinks"][SinkStatus.EXCLUDED.value],
        )
        return report


def classify_graph(
    config: EndpointConfiguration,
    graph: GraphProvider,
    max_workers: Optional[int] = None,
    include_labels: bool = True,
) -> ClassificationReport:
    """Convenience wrapper around EndpointClassifier.classify_graph."""
    classifier = EndpointClassifier(config, include_labels=include_labels, max_workers=max_workers)
    return classifier.classify_graph(graph)
