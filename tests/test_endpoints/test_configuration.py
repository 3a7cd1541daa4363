"""Tests for per-query endpoint configurations."""

import pytest

from taintboost.endpoints.characteristics import CharacteristicFamily, make_characteristic
from taintboost.endpoints.configuration import (
    EndpointConfiguration,
    FlowPath,
    QueryKind,
    QuerySpec,
)
from taintboost.endpoints.types import (
    NegativeType,
    SqlInjectionSinkType,
    TaintedPathSinkType,
    XssSinkType,
)
from taintboost.models.base import SinkStatus, SourceStatus, StructuralContractViolation
from taintboost.models.graph import GraphSnapshot


def _spec(**overrides) -> QuerySpec:
    fields = {
        "kind": QueryKind.SQL_INJECTION,
        "is_known_source": lambda node: "remote-flow" in node.known_sources,
        "relevant_sink_types": (SqlInjectionSinkType,),
    }
    fields.update(overrides)
    return QuerySpec(**fields)


class TestConstruction:
    """Test that malformed query specs are refused at build time."""

    def test_valid_spec(self):
        config = EndpointConfiguration(_spec())
        assert config.query_id == "sql-injection"
        assert config.relevant_sink_types == (SqlInjectionSinkType,)
        assert repr(config) == "EndpointConfiguration(sql-injection)"

    def test_missing_known_source_rule(self):
        with pytest.raises(StructuralContractViolation, match="known-source rule"):
            EndpointConfiguration(_spec(is_known_source=None))

    def test_no_relevant_sink_types(self):
        with pytest.raises(StructuralContractViolation, match="no relevant sink types"):
            EndpointConfiguration(_spec(relevant_sink_types=()))

    def test_negative_class_as_sink_type(self):
        with pytest.raises(StructuralContractViolation, match="negative class"):
            EndpointConfiguration(_spec(relevant_sink_types=(NegativeType,)))

    def test_non_endpoint_sink_type(self):
        with pytest.raises(StructuralContractViolation, match="not an endpoint type"):
            EndpointConfiguration(_spec(relevant_sink_types=("SqlInjectionSinkType",)))

    def test_unknown_kind(self):
        with pytest.raises(StructuralContractViolation, match="Unknown query kind"):
            EndpointConfiguration(_spec(kind="sql-injection"))

    def test_refinement_not_a_characteristic(self):
        with pytest.raises(StructuralContractViolation, match="not a characteristic"):
            EndpointConfiguration(_spec(sink_refinements=(lambda node: True,)))

    def test_refinement_shadowing_global_name(self):
        shadow = make_characteristic(
            "constant-value", CharacteristicFamily.NOT_A_SINK, lambda node: True
        )
        with pytest.raises(StructuralContractViolation, match="Duplicate characteristic"):
            EndpointConfiguration(_spec(sink_refinements=(shadow,)))

    def test_non_callable_effective_source(self):
        with pytest.raises(StructuralContractViolation, match="effective-source"):
            EndpointConfiguration(_spec(is_effective_source="yes"))

    def test_query_kind_from_string(self):
        assert QueryKind.from_string("SQL_INJECTION") is QueryKind.SQL_INJECTION
        with pytest.raises(ValueError):
            QueryKind.from_string("csrf")


class TestSinkAxis:
    """Test known / effective / excluded decisions."""

    def test_known_sink(self, sql_config, make_node):
        node = make_node(known_sinks={"sql-injection"})

        assert sql_config.is_known_sink(node)
        assert sql_config.is_sink(node)
        assert sql_config.sink_status(node) == SinkStatus.KNOWN_SINK
        assert sql_config.relevant_sink_types[0].encoding == 1

    def test_plain_node_is_effective(self, sql_config, make_node):
        node = make_node(callee_name="buildReport")

        assert sql_config.is_effective_sink(node)
        assert not sql_config.is_known_sink(node)
        assert sql_config.sink_status(node) == SinkStatus.EFFECTIVE_SINK

    def test_filtered_node_is_excluded(self, sql_config, make_node):
        node = make_node(sanitizes={"custom"})

        assert not sql_config.is_effective_sink(node)
        assert sql_config.is_excluded(node)
        assert sql_config.exclusion_reasons(node) == ["sanitized-value"]
        assert sql_config.sink_status(node) == SinkStatus.EXCLUDED

    def test_known_sink_is_never_excluded(self, sql_config, make_node):
        node = make_node(callee_name="print", known_sinks={"sql-injection"})

        assert not sql_config.is_excluded(node)
        assert sql_config.sink_status(node) == SinkStatus.KNOWN_SINK

    def test_known_sink_of_other_class(self, sql_config, make_node):
        node = make_node(kind="property-write", property_name="innerHTML", known_sinks={"xss"})

        assert sql_config.is_known_sink_of_other_class(node)
        assert not sql_config.is_effective_sink(node)
        assert not sql_config.is_sink(node)
        assert sql_config.sink_status(node) == SinkStatus.NOT_A_SINK

    def test_refinement_applies_to_its_query_only(self, sql_config, xss_config, make_node):
        node = make_node(callee_name="buildReport")

        assert sql_config.is_effective_sink(node)
        assert not xss_config.is_effective_sink(node)
        assert xss_config.exclusion_reasons(node) == ["not-likely-xss-sink"]

    def test_multi_type_query_needs_all_filters(self, make_node):
        only_sql = make_characteristic(
            "sql-only-filter",
            CharacteristicFamily.STANDARD_FILTER,
            lambda node: node.callee_name == "format",
            (SqlInjectionSinkType,),
        )
        config = EndpointConfiguration(
            _spec(
                relevant_sink_types=(SqlInjectionSinkType, TaintedPathSinkType),
                sink_refinements=(only_sql,),
            )
        )
        assert config.is_effective_sink(make_node(callee_name="format"))

    def test_ambiguity(self, sql_config, make_node):
        node = make_node("dual", known_sinks={"sql-injection", "xss"})

        ambiguity = sql_config.find_ambiguity(node)
        assert ambiguity is not None
        assert ambiguity.type_names == ("SqlInjectionSinkType", "XssSinkType")
        assert sql_config.sink_status(node) == SinkStatus.KNOWN_SINK

    def test_deterministic(self, xss_config, sample_graph):
        first = [xss_config.sink_status(node) for node in sample_graph]
        second = [xss_config.sink_status(node) for node in sample_graph]
        assert first == second


class TestSourceAxis:
    """Test source decisions."""

    def test_known_source(self, sql_config, make_node):
        node = make_node(kind="parameter", known_sources={"remote-flow"})
        assert sql_config.is_known_source(node)
        assert sql_config.source_status(node) == SourceStatus.KNOWN_SOURCE

    def test_not_a_source(self, sql_config, make_node):
        node = make_node()
        assert not sql_config.is_source(node)
        assert sql_config.source_status(node) == SourceStatus.NOT_A_SOURCE

    def test_effective_source(self, make_node):
        config = EndpointConfiguration(
            _spec(is_effective_source=lambda node: node.kind == "parameter")
        )
        node = make_node(kind="parameter")

        assert config.is_effective_source(node)
        assert config.is_source(node)
        assert config.source_status(node) == SourceStatus.EFFECTIVE_SOURCE

    def test_no_effective_source_rule(self, sql_config, make_node):
        assert not sql_config.is_effective_source(make_node(kind="parameter"))


class TestFlowBindings:
    """Test predicates handed to the flow engine."""

    def test_sanitizer_classes(self, sql_config, make_node):
        assert sql_config.is_sanitizer(make_node(sanitizes={"sql-escape"}))
        assert sql_config.is_sanitizer(make_node(sanitizes={"*"}))
        assert not sql_config.is_sanitizer(make_node(sanitizes={"html-escape"}))
        assert not sql_config.is_sanitizer(make_node())

    def test_additional_flow_step(self, sql_config, xss_config, make_node):
        a, b, c = make_node("a"), make_node("b"), make_node("c")
        graph = GraphSnapshot([a, b, c], steps={("a", "b"): {"dom"}, ("b", "c"): {"*"}})

        xss_step = xss_config.additional_flow_step_predicate(graph)
        sql_step = sql_config.additional_flow_step_predicate(graph)

        assert xss_step(a, b)
        assert not sql_step(a, b)
        assert xss_step(b, c) and sql_step(b, c)
        assert not xss_step(a, c)

    def test_known_and_boosted_predicates(self, sql_config, sample_graph):
        plain = sample_graph.get("plain_arg")
        known = sql_config.known_predicates(sample_graph)
        boosted = sql_config.boosted_predicates(sample_graph)

        assert not known.is_sink(plain)
        assert boosted.is_sink(plain)
        assert known.is_sink(sample_graph.get("known_sql"))
        assert boosted.is_source(sample_graph.get("src"))


class TestPathFiltering:
    """Test selection of novel source-to-sink paths."""

    def test_path_to_effective_sink_is_candidate(self, sql_config, sample_graph):
        path = FlowPath(sample_graph.get("src"), sample_graph.get("plain_arg"))
        assert sql_config.sink_candidate_with_flow(path)

    def test_path_in_base_query_is_dropped(self, sql_config, sample_graph):
        source, sink = sample_graph.get("src"), sample_graph.get("known_sql")
        path = FlowPath(source, sink)

        assert sql_config.is_flow_likely_in_base_query(source, sink)
        assert not sql_config.sink_candidate_with_flow(path)

    def test_path_already_known_is_dropped(self, sql_config, sample_graph):
        path = FlowPath(sample_graph.get("src"), sample_graph.get("plain_arg"))
        assert not sql_config.sink_candidate_with_flow(path, known_paths={path.key})

    def test_path_to_excluded_sink_is_dropped(self, sql_config, sample_graph):
        path = FlowPath(sample_graph.get("src"), sample_graph.get("log_arg"))
        assert not sql_config.sink_candidate_with_flow(path)

    def test_candidate_paths(self, sql_config, sample_graph, flow_engine_factory):
        engine = flow_engine_factory(
            [("src", "known_sql"), ("src", "plain_arg"), ("src", "log_arg"), ("src", "missing")]
        )
        paths = sql_config.candidate_paths(engine, sample_graph)

        assert [p.key for p in paths] == [("src", "plain_arg")]
        assert engine.calls == 2

    def test_candidate_paths_one_per_sink(self, sql_config, make_node, flow_engine_factory):
        graph = GraphSnapshot(
            [
                make_node("s1", kind="parameter", known_sources={"remote-flow"}),
                make_node("s2", kind="parameter", known_sources={"sql-injection"}),
                make_node("sink", callee_name="runReport"),
            ]
        )
        engine = flow_engine_factory([("s1", "sink"), ("s2", "sink")])

        paths = sql_config.candidate_paths(engine, graph)
        assert [p.key for p in paths] == [("s1", "sink")]

    def test_sanitized_flow_not_reported(self, sql_config, make_node, flow_engine_factory):
        graph = GraphSnapshot(
            [
                make_node("s", kind="parameter", known_sources={"remote-flow"}),
                make_node("sink", callee_name="runReport", sanitizes={"sql-escape"}),
            ]
        )
        engine = flow_engine_factory([("s", "sink")])
        assert sql_config.candidate_paths(engine, graph) == []
