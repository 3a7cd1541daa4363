"""Helpers shared by the query specs."""

from __future__ import annotations

from taintboost.endpoints.characteristics import NodePredicate
from taintboost.models.graph import DataFlowNode

# Sources reported by the base classifiers for every remote-input query
REMOTE_FLOW_SOURCE = "remote-flow"


def is_likely_external_call_argument(node: DataFlowNode) -> bool:
    """Argument to a call into library code, directly or through flow."""
    return (node.is_argument and node.is_external_call) or node.flows_to_external_call


def known_source_rule(*classes: str) -> NodePredicate:
    """Known-source rule accepting any of the given base-classifier classes."""
    accepted = frozenset(classes)

    def is_known_source(node: DataFlowNode) -> bool:
        return bool(node.known_sources & accepted)

    return is_known_source
