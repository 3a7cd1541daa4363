"""
Configuration orchestrator.

Binds the characteristic engine to one vulnerability class (a query):
decides known / effective / excluded status on the source and sink axes,
exposes the predicates the flow engine consumes, and filters discovered
source-to-sink paths down to the novel ones worth sending to the ML scorer.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from taintboost.endpoints.characteristics import (
    GLOBAL_CHARACTERISTICS,
    Characteristic,
    NodePredicate,
    exclusion_reasons,
    find_ambiguity,
    known_types,
    validate_characteristics,
)
from taintboost.endpoints.types import EndpointType
from taintboost.models.base import (
    AmbiguousClassification,
    SinkStatus,
    SourceStatus,
    StructuralContractViolation,
)
from taintboost.models.graph import DataFlowNode, GraphProvider
from taintboost.utils.logging import get_logger

logger = get_logger("configuration", parent="endpoints")

# Shared default class accepted by every query for sanitizers and flow steps
DEFAULT_CLASS = "*"


class QueryKind(Enum):
    """Closed set of supported vulnerability classes."""

    SQL_INJECTION = "sql-injection"
    NOSQL_INJECTION = "nosql-injection"
    XSS = "xss"
    TAINTED_PATH = "tainted-path"
    SHELL_COMMAND_INJECTION = "shell-command-injection"

    @classmethod
    def from_string(cls, value: str) -> "QueryKind":
        """Create QueryKind from string, case-insensitive."""
        return cls(value.lower().replace("_", "-"))


@dataclass(frozen=True)
class QuerySpec:
    """
    Per-query capabilities.

    is_known_source and relevant_sink_types are required; leaving either
    out makes EndpointConfiguration refuse to build.
    """

    kind: QueryKind
    is_known_source: Optional[NodePredicate] = field(default=None, compare=False)
    relevant_sink_types: tuple[EndpointType, ...] = ()
    sink_refinements: tuple[Characteristic, ...] = ()
    is_effective_source: Optional[NodePredicate] = field(default=None, compare=False)
    sanitizer_classes: frozenset[str] = frozenset()
    flow_step_tags: frozenset[str] = frozenset()
    description: str = ""


@dataclass(frozen=True)
class FlowPredicates:
    """Predicate bundle handed to the flow engine."""

    is_source: NodePredicate
    is_sink: NodePredicate
    is_sanitizer: NodePredicate
    is_additional_flow_step: Callable[[DataFlowNode, DataFlowNode], bool]


@dataclass(frozen=True)
class FlowPath:
    """A source-to-sink path reported by the flow engine."""

    source: DataFlowNode
    sink: DataFlowNode
    steps: tuple[str, ...] = ()

    @property
    def key(self) -> tuple[str, str]:
        return (self.source.node_id, self.sink.node_id)


class FlowEngine(ABC):
    """External taint-propagation engine."""

    @abstractmethod
    def find_paths(self, predicates: FlowPredicates, graph: GraphProvider) -> list[FlowPath]:
        """Enumerate source-to-sink paths under the given predicates."""
        pass


class EndpointConfiguration:
    """
    Classification rules for one vulnerability class.

    Stateless beyond the query spec: every method is a pure function of its
    arguments, so one instance can be shared across threads.

    Example:
        config = EndpointConfiguration(XSS_SPEC)
        if config.is_effective_sink(node) and not config.is_known_sink(node):
            ...
    """

    def __init__(self, spec: QuerySpec) -> None:
        """
        Validate the query spec and build the configuration.

        Raises:
            StructuralContractViolation: If a required capability is missing
                or malformed
        """
        self._validate(spec)
        self.spec = spec
        self._characteristics: tuple[Characteristic, ...] = (
            GLOBAL_CHARACTERISTICS + tuple(spec.sink_refinements)
        )
        validate_characteristics(self._characteristics)
        self._sanitizer_classes = frozenset({DEFAULT_CLASS}) | spec.sanitizer_classes
        self._flow_step_tags = frozenset({DEFAULT_CLASS}) | spec.flow_step_tags
        logger.debug(
            "Configuration built",
            query=spec.kind.value,
            relevant=",".join(t.name for t in spec.relevant_sink_types),
            refinements=len(spec.sink_refinements),
        )

    @staticmethod
    def _validate(spec: QuerySpec) -> None:
        if not isinstance(spec.kind, QueryKind):
            raise StructuralContractViolation(f"Unknown query kind: {spec.kind!r}")
        name = spec.kind.value
        if spec.is_known_source is None or not callable(spec.is_known_source):
            raise StructuralContractViolation(f"Query {name} does not define a known-source rule")
        if not spec.relevant_sink_types:
            raise StructuralContractViolation(f"Query {name} selects no relevant sink types")
        for endpoint_type in spec.relevant_sink_types:
            if not isinstance(endpoint_type, EndpointType):
                raise StructuralContractViolation(
                    f"Query {name} lists {endpoint_type!r}, which is not an endpoint type"
                )
            if endpoint_type.is_negative:
                raise StructuralContractViolation(
                    f"Query {name} cannot select the negative class as a sink type"
                )
        for refinement in spec.sink_refinements:
            if not isinstance(refinement, Characteristic):
                raise StructuralContractViolation(
                    f"Query {name} has a refinement that is not a characteristic: {refinement!r}"
                )
        if spec.is_effective_source is not None and not callable(spec.is_effective_source):
            raise StructuralContractViolation(f"Query {name} has a non-callable effective-source rule")

    @property
    def query_id(self) -> str:
        return self.spec.kind.value

    @property
    def relevant_sink_types(self) -> tuple[EndpointType, ...]:
        return self.spec.relevant_sink_types

    @property
    def characteristics(self) -> tuple[Characteristic, ...]:
        return self._characteristics

    # Source axis

    def is_known_source(self, node: DataFlowNode) -> bool:
        return bool(self.spec.is_known_source(node))

    def is_effective_source(self, node: DataFlowNode) -> bool:
        if self.spec.is_effective_source is None:
            return False
        return bool(self.spec.is_effective_source(node))

    def is_source(self, node: DataFlowNode) -> bool:
        return self.is_known_source(node) or self.is_effective_source(node)

    def source_status(self, node: DataFlowNode) -> SourceStatus:
        if self.is_known_source(node):
            return SourceStatus.KNOWN_SOURCE
        if self.is_effective_source(node):
            return SourceStatus.EFFECTIVE_SOURCE
        return SourceStatus.NOT_A_SOURCE

    # Sink axis

    def is_known_sink(self, node: DataFlowNode) -> bool:
        known = known_types(node, self._characteristics)
        return any(t in known for t in self.relevant_sink_types)

    def is_known_sink_of_other_class(self, node: DataFlowNode) -> bool:
        """Known sink for some positive type, but none of this query's types."""
        known = known_types(node, self._characteristics)
        if any(t in known for t in self.relevant_sink_types):
            return False
        return any(not t.is_negative for t in known)

    def exclusion_reasons(self, node: DataFlowNode) -> list[str]:
        return exclusion_reasons(node, self.relevant_sink_types, self._characteristics)

    def is_excluded(self, node: DataFlowNode) -> bool:
        return bool(self.exclusion_reasons(node))

    def is_effective_sink(self, node: DataFlowNode) -> bool:
        if self.is_excluded(node):
            return False
        return not self.is_known_sink_of_other_class(node)

    def is_sink(self, node: DataFlowNode) -> bool:
        return self.is_known_sink(node) or self.is_effective_sink(node)

    def sink_status(self, node: DataFlowNode) -> SinkStatus:
        if self.is_known_sink(node):
            return SinkStatus.KNOWN_SINK
        if self.is_excluded(node):
            return SinkStatus.EXCLUDED
        if self.is_known_sink_of_other_class(node):
            return SinkStatus.NOT_A_SINK
        return SinkStatus.EFFECTIVE_SINK

    def find_ambiguity(self, node: DataFlowNode) -> Optional[AmbiguousClassification]:
        return find_ambiguity(node, self._characteristics)

    # Flow engine bindings

    def is_sanitizer(self, node: DataFlowNode) -> bool:
        return bool(node.sanitizes & self._sanitizer_classes)

    def additional_flow_step_predicate(
        self, graph: GraphProvider
    ) -> Callable[[DataFlowNode, DataFlowNode], bool]:
        """Bind the additional-flow-step test to a graph snapshot."""

        def is_additional_flow_step(pred: DataFlowNode, succ: DataFlowNode) -> bool:
            return bool(graph.step_tags(pred.node_id, succ.node_id) & self._flow_step_tags)

        return is_additional_flow_step

    def known_predicates(self, graph: GraphProvider) -> FlowPredicates:
        """Predicates of the non-boosted analysis."""
        return FlowPredicates(
            is_source=self.is_known_source,
            is_sink=self.is_known_sink,
            is_sanitizer=self.is_sanitizer,
            is_additional_flow_step=self.additional_flow_step_predicate(graph),
        )

    def boosted_predicates(self, graph: GraphProvider) -> FlowPredicates:
        """Predicates including effective candidates."""
        return FlowPredicates(
            is_source=self.is_source,
            is_sink=self.is_sink,
            is_sanitizer=self.is_sanitizer,
            is_additional_flow_step=self.additional_flow_step_predicate(graph),
        )

    # Path filtering

    def is_flow_likely_in_base_query(self, source: DataFlowNode, sink: DataFlowNode) -> bool:
        return self.is_known_source(source) and self.is_known_sink(sink)

    def sink_candidate_with_flow(
        self,
        path: FlowPath,
        known_paths: Optional[set[tuple[str, str]]] = None,
    ) -> bool:
        """
        Decide whether a discovered path is worth sending to the ML scorer.

        Args:
            path: Path found with the boosted predicates
            known_paths: (source_id, sink_id) pairs found with the known
                predicates only, if the caller has them

        Returns:
            True if the path is not already reported by the base analysis
            and ends at an effective sink that is not a known sink
        """
        if known_paths is not None and path.key in known_paths:
            return False
        if self.is_flow_likely_in_base_query(path.source, path.sink):
            return False
        return self.is_effective_sink(path.sink) and not self.is_known_sink(path.sink)

    def candidate_paths(self, engine: FlowEngine, graph: GraphProvider) -> list[FlowPath]:
        """
        Run the flow engine and keep the novel paths.

        Returns:
            One path per candidate sink, in the engine's order
        """
        known_paths = {p.key for p in engine.find_paths(self.known_predicates(graph), graph)}
        boosted = engine.find_paths(self.boosted_predicates(graph), graph)

        selected: list[FlowPath] = []
        seen_sinks: set[str] = set()
        for path in boosted:
            if path.sink.node_id in seen_sinks:
                continue
            if self.sink_candidate_with_flow(path, known_paths):
                seen_sinks.add(path.sink.node_id)
                selected.append(path)

        logger.info(
            "Filtered flow paths",
            query=self.query_id,
            known=len(known_paths),
            boosted=len(boosted),
            candidates=len(selected),
        )
        return selected

    def __repr__(self) -> str:
        return f"EndpointConfiguration({self.query_id})"

