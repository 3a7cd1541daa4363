"""
Shell command injection from the environment.

Sources are environment reads (variables, argv) rather than remote input.
"""

from __future__ import annotations

from taintboost.endpoints.configuration import QueryKind, QuerySpec
from taintboost.endpoints.types import ShellCommandInjectionSinkType
from taintboost.queries.common import known_source_rule

ENVIRONMENT_SOURCE = "environment"

SHELL_COMMAND_INJECTION_SPEC = QuerySpec(
    kind=QueryKind.SHELL_COMMAND_INJECTION,
    is_known_source=known_source_rule(
        QueryKind.SHELL_COMMAND_INJECTION.value, ENVIRONMENT_SOURCE
    ),
    relevant_sink_types=(ShellCommandInjectionSinkType,),
    sanitizer_classes=frozenset({"shell-quote"}),
    description="Environment-controlled data reaching a shell command",
)
