"""
Characteristic engine.

A characteristic is a named rule that applies to some data-flow nodes and
implies, with a given confidence, that those nodes are (or are not) of
certain endpoint types. The engine combines the implications of every
applicable characteristic into three answers:

- known: maximal positive evidence for a type
- excluded: medium-or-better evidence that the node is a negative example,
  or medium-or-better negative evidence for every relevant type
- neither: no decisive evidence, the node stays an effective candidate
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable, Optional

from taintboost.endpoints.types import (
    NegativeType,
    NosqlInjectionSinkType,
    POSITIVE_TYPES,
    ShellCommandInjectionSinkType,
    SqlInjectionSinkType,
    TaintedPathSinkType,
    XssSinkType,
    EndpointType,
)
from taintboost.models.base import (
    AmbiguousClassification,
    Confidence,
    StructuralContractViolation,
)
from taintboost.models.graph import DataFlowNode

NodePredicate = Callable[[DataFlowNode], bool]

# Vulnerability class ids used by the base (non-ML) classifiers
SINK_CLASS_IDS: dict[EndpointType, str] = {
    SqlInjectionSinkType: "sql-injection",
    NosqlInjectionSinkType: "nosql-injection",
    XssSinkType: "xss",
    TaintedPathSinkType: "tainted-path",
    ShellCommandInjectionSinkType: "shell-command-injection",
}


class CharacteristicFamily(Enum):
    """Closed set of characteristic shapes."""

    KNOWN_SINK = "known_sink"                  # type, positive, maximal
    NOT_A_SINK = "not_a_sink"                  # negative class, positive, high
    LIKELY_NOT_A_SINK = "likely_not_a_sink"    # negative class, positive, medium
    STANDARD_FILTER = "standard_filter"        # each type, negative, medium


@dataclass(frozen=True)
class Implication:
    """Evidence for or against one endpoint type."""

    endpoint_type: EndpointType
    is_positive: bool
    confidence: Confidence


@dataclass(frozen=True)
class Characteristic:
    """
    A named, confidence-weighted rule over data-flow nodes.

    Equality is by name and implications; the predicate is not compared.
    """

    name: str
    family: CharacteristicFamily
    implications: tuple[Implication, ...]
    predicate: NodePredicate = field(compare=False, repr=False)

    def applies_to(self, node: DataFlowNode) -> bool:
        return bool(self.predicate(node))

    def implies(
        self,
        endpoint_type: EndpointType,
        is_positive: bool,
        min_confidence: Confidence,
    ) -> bool:
        """Check whether this characteristic carries the given evidence."""
        return any(
            i.endpoint_type == endpoint_type
            and i.is_positive == is_positive
            and i.confidence >= min_confidence
            for i in self.implications
        )


def _implications_for(
    family: CharacteristicFamily,
    types: tuple[EndpointType, ...],
) -> tuple[Implication, ...]:
    if family is CharacteristicFamily.KNOWN_SINK:
        return tuple(Implication(t, True, Confidence.MAXIMAL) for t in types)
    if family is CharacteristicFamily.NOT_A_SINK:
        return (Implication(NegativeType, True, Confidence.HIGH),)
    if family is CharacteristicFamily.LIKELY_NOT_A_SINK:
        return (Implication(NegativeType, True, Confidence.MEDIUM),)
    if family is CharacteristicFamily.STANDARD_FILTER:
        return tuple(Implication(t, False, Confidence.MEDIUM) for t in types)
    raise StructuralContractViolation(f"Unhandled characteristic family: {family}")


def make_characteristic(
    name: str,
    family: CharacteristicFamily,
    predicate: NodePredicate,
    types: tuple[EndpointType, ...] = (),
) -> Characteristic:
    """
    Build a characteristic of the given family.

    Args:
        name: Unique descriptive name, also used as exclusion reason
        family: Shape of the implications
        predicate: Applicability test over nodes
        types: Endpoint types for KNOWN_SINK and STANDARD_FILTER families

    Raises:
        StructuralContractViolation: If the name is empty or the family
            needs types and none (or the negative class) were given
    """
    if not name:
        raise StructuralContractViolation("Characteristic name must not be empty")
    needs_types = family in (CharacteristicFamily.KNOWN_SINK, CharacteristicFamily.STANDARD_FILTER)
    if needs_types and not types:
        raise StructuralContractViolation(f"Characteristic {name} needs at least one endpoint type")
    if needs_types and any(t.is_negative for t in types):
        raise StructuralContractViolation(
            f"Characteristic {name} cannot target the negative class directly"
        )
    return Characteristic(
        name=name,
        family=family,
        implications=_implications_for(family, tuple(types)),
        predicate=predicate,
    )


def known_sink_characteristic(endpoint_type: EndpointType) -> Characteristic:
    """Known sink of a type, as reported by the base classifier for its class."""
    class_id = SINK_CLASS_IDS[endpoint_type]
    return make_characteristic(
        f"{class_id}-sink",
        CharacteristicFamily.KNOWN_SINK,
        lambda node: class_id in node.known_sinks,
        (endpoint_type,),
    )


# Name tables for the not-a-sink heuristics
LOGGER_CALLEES = re.compile(r"^(log|debug|info|warn|warning|error|trace|fatal|exception)$", re.I)
LOGGER_RECEIVERS = re.compile(r"(^console$|logger$|^log$|^logging$)", re.I)
TIMER_CALLEES = frozenset({"setTimeout", "setInterval", "setImmediate", "nextTick"})
STRING_TEST_CALLEES = frozenset(
    {"startsWith", "endsWith", "startswith", "endswith", "includes", "indexOf", "test", "match"}
)
EVENT_REGISTRATION_CALLEES = frozenset(
    {"on", "once", "addEventListener", "addListener", "removeListener", "off"}
)
EVENT_DISPATCH_CALLEES = frozenset({"emit", "dispatchEvent", "trigger", "fire"})
CRYPTO_NAMES = re.compile(r"(crypto|cipher|hmac|encrypt|decrypt|createhash|digest|^sign$)", re.I)
DATE_CALLEES = frozenset({"Date", "moment", "dayjs", "strftime", "strptime", "fromtimestamp"})
BUILTIN_CALLEES = frozenset(
    {
        "parseInt", "parseFloat", "isNaN", "isFinite", "Number", "String", "Boolean",
        "Array", "Object", "len", "int", "float", "str", "bool", "isinstance",
        "hasattr", "getattr", "repr", "hash", "id", "type",
    }
)


def _callee_in(names: frozenset[str]) -> NodePredicate:
    return lambda node: node.is_argument and node.callee_name in names


def _is_logger_argument(node: DataFlowNode) -> bool:
    if not node.is_argument or not node.callee_name:
        return False
    if node.receiver_name is None:
        return node.callee_name == "print"
    return bool(
        LOGGER_RECEIVERS.search(node.receiver_name) and LOGGER_CALLEES.match(node.callee_name)
    )


def _is_crypto_argument(node: DataFlowNode) -> bool:
    if not node.is_argument:
        return False
    names = (node.callee_name or "", node.receiver_name or "")
    return any(CRYPTO_NAMES.search(name) for name in names if name)


def _is_receiver_storage(node: DataFlowNode) -> bool:
    return node.kind == "receiver" and node.receiver_name in ("this", "self")


GLOBAL_CHARACTERISTICS: tuple[Characteristic, ...] = (
    *(known_sink_characteristic(t) for t in POSITIVE_TYPES),
    # Confident negatives
    make_characteristic("logger-method-argument", CharacteristicFamily.NOT_A_SINK, _is_logger_argument),
    make_characteristic("timeout-argument", CharacteristicFamily.NOT_A_SINK, _callee_in(TIMER_CALLEES)),
    make_characteristic("receiver-storage", CharacteristicFamily.NOT_A_SINK, _is_receiver_storage),
    make_characteristic(
        "string-test-argument", CharacteristicFamily.NOT_A_SINK, _callee_in(STRING_TEST_CALLEES)
    ),
    make_characteristic(
        "event-registration-argument",
        CharacteristicFamily.NOT_A_SINK,
        _callee_in(EVENT_REGISTRATION_CALLEES),
    ),
    make_characteristic(
        "event-dispatch-argument", CharacteristicFamily.NOT_A_SINK, _callee_in(EVENT_DISPATCH_CALLEES)
    ),
    make_characteristic("cryptographic-argument", CharacteristicFamily.NOT_A_SINK, _is_crypto_argument),
    make_characteristic("date-argument", CharacteristicFamily.NOT_A_SINK, _callee_in(DATE_CALLEES)),
    # Likely negatives
    make_characteristic(
        "constant-value", CharacteristicFamily.LIKELY_NOT_A_SINK, lambda node: node.is_constant
    ),
    make_characteristic(
        "builtin-function-argument", CharacteristicFamily.LIKELY_NOT_A_SINK, _callee_in(BUILTIN_CALLEES)
    ),
    make_characteristic(
        "in-test-file", CharacteristicFamily.LIKELY_NOT_A_SINK, lambda node: node.in_test_file
    ),
    # Per-type filters
    make_characteristic(
        "sanitized-value",
        CharacteristicFamily.STANDARD_FILTER,
        lambda node: bool(node.sanitizes),
        (SqlInjectionSinkType, NosqlInjectionSinkType, XssSinkType),
    ),
)


def validate_characteristics(characteristics: Iterable[Characteristic]) -> None:
    """Raise StructuralContractViolation on duplicate characteristic names."""
    seen: set[str] = set()
    for characteristic in characteristics:
        if characteristic.name in seen:
            raise StructuralContractViolation(f"Duplicate characteristic: {characteristic.name}")
        seen.add(characteristic.name)


validate_characteristics(GLOBAL_CHARACTERISTICS)


def applicable_characteristics(
    node: DataFlowNode,
    characteristics: Iterable[Characteristic] = GLOBAL_CHARACTERISTICS,
) -> tuple[Characteristic, ...]:
    """Return the characteristics whose predicate holds for the node."""
    return tuple(c for c in characteristics if c.applies_to(node))


def known_types(
    node: DataFlowNode,
    characteristics: Iterable[Characteristic] = GLOBAL_CHARACTERISTICS,
) -> frozenset[EndpointType]:
    """Types for which the node carries maximal positive evidence."""
    return frozenset(
        i.endpoint_type
        for c in applicable_characteristics(node, characteristics)
        for i in c.implications
        if i.is_positive and i.confidence >= Confidence.MAXIMAL
    )


def is_known(
    node: DataFlowNode,
    endpoint_type: EndpointType,
    characteristics: Iterable[Characteristic] = GLOBAL_CHARACTERISTICS,
) -> bool:
    return endpoint_type in known_types(node, characteristics)


def exclusion_reasons(
    node: DataFlowNode,
    relevant_types: Iterable[EndpointType],
    characteristics: Iterable[Characteristic] = GLOBAL_CHARACTERISTICS,
) -> list[str]:
    """
    Names of the characteristics that exclude the node.

    Known evidence for a relevant type takes precedence: such a node is never
    excluded. With no relevant types only negative-class evidence applies.

    Returns:
        Sorted, de-duplicated characteristic names (empty if not excluded)
    """
    relevant = tuple(relevant_types)
    applicable = applicable_characteristics(node, characteristics)

    if any(
        i.endpoint_type in relevant and i.is_positive and i.confidence >= Confidence.MAXIMAL
        for c in applicable
        for i in c.implications
    ):
        return []

    reasons = {
        c.name for c in applicable if c.implies(NegativeType, True, Confidence.MEDIUM)
    }

    if relevant:
        per_type = {
            t: [c.name for c in applicable if c.implies(t, False, Confidence.MEDIUM)]
            for t in relevant
        }
        if all(per_type.values()):
            for names in per_type.values():
                reasons.update(names)

    return sorted(reasons)


def is_excluded(
    node: DataFlowNode,
    relevant_types: Iterable[EndpointType],
    characteristics: Iterable[Characteristic] = GLOBAL_CHARACTERISTICS,
) -> bool:
    return bool(exclusion_reasons(node, relevant_types, characteristics))


def find_ambiguity(
    node: DataFlowNode,
    characteristics: Iterable[Characteristic] = GLOBAL_CHARACTERISTICS,
) -> Optional[AmbiguousClassification]:
    """
    Detect maximal positive evidence for more than one endpoint type.

    Returns:
        An AmbiguousClassification record, or None if unambiguous
    """
    types = known_types(node, characteristics)
    if len(types) < 2:
        return None
    ordered = sorted(types, key=lambda t: t.encoding)
    return AmbiguousClassification(
        node_id=node.node_id,
        type_names=tuple(t.name for t in ordered),
    )
