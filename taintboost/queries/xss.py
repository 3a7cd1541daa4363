"""
Cross-site scripting (markup injection) query.

Besides the generic filter, a node only stays an XSS sink candidate if it is
a likely argument to an external call or looks like it ends up in HTML.
"""

from __future__ import annotations

import re

from taintboost.endpoints.characteristics import CharacteristicFamily, make_characteristic
from taintboost.endpoints.configuration import QueryKind, QuerySpec
from taintboost.endpoints.types import XssSinkType
from taintboost.models.graph import DataFlowNode
from taintboost.queries.common import (
    REMOTE_FLOW_SOURCE,
    is_likely_external_call_argument,
    known_source_rule,
)

# A complete opening or closing tag inside a constant string part
HTML_CONCATENATION_PATTERN = re.compile(r"</?[a-z][a-z0-9]*[^<>]*>", re.I)
# Anything that starts like a tag
HTML_TAG_PATTERN = re.compile(r"<[a-z!/]", re.I)
RENDER_CALLEE_PATTERN = re.compile(r"(render|html)", re.I)
HTML_PROPERTY_PATTERN = re.compile(r"html", re.I)


def is_html_concatenation(node: DataFlowNode) -> bool:
    """Part of a concatenation whose constant parts contain HTML markup."""
    return any(HTML_CONCATENATION_PATTERN.search(part) for part in node.concatenation_parts)


def matches_html_tag(node: DataFlowNode) -> bool:
    return bool(node.string_value) and bool(HTML_TAG_PATTERN.search(node.string_value or ""))


def is_render_call_argument(node: DataFlowNode) -> bool:
    return node.is_argument and bool(RENDER_CALLEE_PATTERN.search(node.callee_name or ""))


def is_html_property_write(node: DataFlowNode) -> bool:
    return node.is_property_write and bool(HTML_PROPERTY_PATTERN.search(node.property_name or ""))


def is_likely_xss_sink(node: DataFlowNode) -> bool:
    """Structural evidence that the value may reach markup."""
    return (
        is_likely_external_call_argument(node)
        or is_html_concatenation(node)
        or node.is_html_concatenation_leaf
        or matches_html_tag(node)
        or is_render_call_argument(node)
        or is_html_property_write(node)
    )


XSS_SPEC = QuerySpec(
    kind=QueryKind.XSS,
    is_known_source=known_source_rule(QueryKind.XSS.value, REMOTE_FLOW_SOURCE),
    relevant_sink_types=(XssSinkType,),
    sink_refinements=(
        make_characteristic(
            "not-likely-xss-sink",
            CharacteristicFamily.STANDARD_FILTER,
            lambda node: not is_likely_xss_sink(node),
            (XssSinkType,),
        ),
    ),
    sanitizer_classes=frozenset({"html-escape"}),
    flow_step_tags=frozenset({"dom"}),
    description="User-controlled data written into HTML",
)
