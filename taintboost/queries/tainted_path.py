"""Tainted path query. Candidates must be likely external-call arguments."""

from __future__ import annotations

from taintboost.endpoints.characteristics import CharacteristicFamily, make_characteristic
from taintboost.endpoints.configuration import QueryKind, QuerySpec
from taintboost.endpoints.types import TaintedPathSinkType
from taintboost.queries.common import (
    REMOTE_FLOW_SOURCE,
    is_likely_external_call_argument,
    known_source_rule,
)

TAINTED_PATH_SPEC = QuerySpec(
    kind=QueryKind.TAINTED_PATH,
    is_known_source=known_source_rule(QueryKind.TAINTED_PATH.value, REMOTE_FLOW_SOURCE),
    relevant_sink_types=(TaintedPathSinkType,),
    sink_refinements=(
        make_characteristic(
            "not-path-external-call-argument",
            CharacteristicFamily.STANDARD_FILTER,
            lambda node: not is_likely_external_call_argument(node),
            (TaintedPathSinkType,),
        ),
    ),
    sanitizer_classes=frozenset({"path-normalize"}),
    flow_step_tags=frozenset({"path-join"}),
    description="User-controlled data used as a file system path",
)
