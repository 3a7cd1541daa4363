"""SQL injection query. Uses the generic filter only."""

from __future__ import annotations

from taintboost.endpoints.configuration import QueryKind, QuerySpec
from taintboost.endpoints.types import SqlInjectionSinkType
from taintboost.queries.common import REMOTE_FLOW_SOURCE, known_source_rule

SQL_INJECTION_SPEC = QuerySpec(
    kind=QueryKind.SQL_INJECTION,
    is_known_source=known_source_rule(QueryKind.SQL_INJECTION.value, REMOTE_FLOW_SOURCE),
    relevant_sink_types=(SqlInjectionSinkType,),
    sanitizer_classes=frozenset({"sql-escape", "parameterized-query"}),
    description="User-controlled data reaching a SQL query",
)
