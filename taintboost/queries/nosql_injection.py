"""
NoSQL injection query.

Query objects are built by library calls, so candidates must be likely
arguments to an external call.
"""

from __future__ import annotations

from taintboost.endpoints.characteristics import CharacteristicFamily, make_characteristic
from taintboost.endpoints.configuration import QueryKind, QuerySpec
from taintboost.endpoints.types import NosqlInjectionSinkType
from taintboost.queries.common import (
    REMOTE_FLOW_SOURCE,
    is_likely_external_call_argument,
    known_source_rule,
)

NOSQL_INJECTION_SPEC = QuerySpec(
    kind=QueryKind.NOSQL_INJECTION,
    is_known_source=known_source_rule(QueryKind.NOSQL_INJECTION.value, REMOTE_FLOW_SOURCE),
    relevant_sink_types=(NosqlInjectionSinkType,),
    sink_refinements=(
        make_characteristic(
            "not-nosql-external-call-argument",
            CharacteristicFamily.STANDARD_FILTER,
            lambda node: not is_likely_external_call_argument(node),
            (NosqlInjectionSinkType,),
        ),
    ),
    sanitizer_classes=frozenset({"nosql-sanitize"}),
    flow_step_tags=frozenset({"json-parse"}),
    description="User-controlled data reaching a NoSQL query object",
)
