"""Per-query configurations, one per supported vulnerability class."""

from __future__ import annotations

from functools import lru_cache
from typing import Iterable, Union

from taintboost.endpoints.configuration import EndpointConfiguration, QueryKind, QuerySpec
from taintboost.models.base import StructuralContractViolation
from taintboost.queries.nosql_injection import NOSQL_INJECTION_SPEC
from taintboost.queries.shell_command_injection import SHELL_COMMAND_INJECTION_SPEC
from taintboost.queries.sql_injection import SQL_INJECTION_SPEC
from taintboost.queries.tainted_path import TAINTED_PATH_SPEC
from taintboost.queries.xss import XSS_SPEC

QUERY_SPECS: dict[QueryKind, QuerySpec] = {
    QueryKind.SQL_INJECTION: SQL_INJECTION_SPEC,
    QueryKind.NOSQL_INJECTION: NOSQL_INJECTION_SPEC,
    QueryKind.XSS: XSS_SPEC,
    QueryKind.TAINTED_PATH: TAINTED_PATH_SPEC,
    QueryKind.SHELL_COMMAND_INJECTION: SHELL_COMMAND_INJECTION_SPEC,
}

if set(QUERY_SPECS) != set(QueryKind):
    missing = sorted(k.value for k in set(QueryKind) - set(QUERY_SPECS))
    raise StructuralContractViolation(f"Queries without a spec: {missing}")


@lru_cache(maxsize=None)
def _configuration(kind: QueryKind) -> EndpointConfiguration:
    return EndpointConfiguration(QUERY_SPECS[kind])


def get_configuration(kind: Union[QueryKind, str]) -> EndpointConfiguration:
    """
    Return the configuration for a query.

    Args:
        kind: QueryKind or its string id (e.g. "xss")

    Raises:
        ValueError: If the string does not name a supported query
    """
    if isinstance(kind, str):
        kind = QueryKind.from_string(kind)
    return _configuration(kind)


def get_configurations(kinds: Iterable[Union[QueryKind, str]]) -> list[EndpointConfiguration]:
    return [get_configuration(kind) for kind in kinds]


__all__ = [
    "QUERY_SPECS",
    "get_configuration",
    "get_configurations",
    "NOSQL_INJECTION_SPEC",
    "SHELL_COMMAND_INJECTION_SPEC",
    "SQL_INJECTION_SPEC",
    "TAINTED_PATH_SPEC",
    "XSS_SPEC",
]
