"""Pytest configuration and shared fixtures."""

from pathlib import Path

import pytest

from taintboost.endpoints.configuration import (
    FlowEngine,
    FlowPath,
    FlowPredicates,
    QueryKind,
)
from taintboost.models.graph import DataFlowNode, GraphProvider, GraphSnapshot
from taintboost.queries import get_configuration


class PairFlowEngine(FlowEngine):
    """
    Flow engine stand-in over a fixed list of (source_id, sink_id) flows.

    A flow is reported when both ends satisfy the predicates and the sink
    is not a sanitizer.
    """

    def __init__(self, flows: list[tuple[str, str]]) -> None:
        self.flows = flows
        self.calls = 0

    def find_paths(self, predicates: FlowPredicates, graph: GraphProvider) -> list[FlowPath]:
        self.calls += 1
        paths = []
        for source_id, sink_id in self.flows:
            source = graph.get(source_id)
            sink = graph.get(sink_id)
            if source is None or sink is None:
                continue
            if predicates.is_sanitizer(sink):
                continue
            if predicates.is_source(source) and predicates.is_sink(sink):
                paths.append(FlowPath(source=source, sink=sink, steps=(source_id, sink_id)))
        return paths


@pytest.fixture
def make_node():
    """Factory for DataFlowNode with sensible defaults."""

    def _make(node_id: str = "n", **fields) -> DataFlowNode:
        fields.setdefault("file_path", Path("/app/handler.js"))
        fields.setdefault("line", 10)
        return DataFlowNode(node_id=node_id, **fields)

    return _make


@pytest.fixture
def sql_config():
    return get_configuration(QueryKind.SQL_INJECTION)


@pytest.fixture
def xss_config():
    return get_configuration(QueryKind.XSS)


@pytest.fixture
def sample_graph(make_node) -> GraphSnapshot:
    """A small graph covering each classification outcome."""
    return GraphSnapshot(
        [
            make_node("src", kind="parameter", known_sources={"remote-flow"}),
            make_node(
                "known_sql",
                callee_name="query",
                receiver_name="db",
                is_external_call=True,
                known_sinks={"sql-injection"},
            ),
            make_node("plain_arg", callee_name="buildReport", argument_index=0),
            make_node("log_arg", callee_name="log", receiver_name="console"),
            make_node("constant", is_constant=True, string_value="SELECT 1"),
            make_node(
                "html_write",
                kind="property-write",
                property_name="innerHTML",
                known_sinks={"xss"},
            ),
        ]
    )


@pytest.fixture
def flow_engine_factory():
    """Build a PairFlowEngine for a list of flows."""
    return PairFlowEngine
