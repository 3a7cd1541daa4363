"""
Endpoint type taxonomy.

Every endpoint class carries a stable integer encoding consumed by the ML
scorer. Encoding 0 is reserved for the universal negative class. The catalog
is append-only: new classes get the next free encoding and existing
encodings are never renumbered.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from taintboost.models.base import StructuralContractViolation


@dataclass(frozen=True)
class EndpointType:
    """An endpoint class with its wire encoding and external kind name."""

    name: str
    encoding: int
    kind: str

    @property
    def is_negative(self) -> bool:
        return self.encoding == 0

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {"name": self.name, "encoding": self.encoding, "kind": self.kind}

    def __str__(self) -> str:
        return self.name


NegativeType = EndpointType("NegativeType", 0, "")
SqlInjectionSinkType = EndpointType("SqlInjectionSinkType", 1, "sql-injection-sink")
NosqlInjectionSinkType = EndpointType("NosqlInjectionSinkType", 2, "nosql-injection-sink")
XssSinkType = EndpointType("XssSinkType", 3, "xss-sink")
TaintedPathSinkType = EndpointType("TaintedPathSinkType", 4, "tainted-path-sink")
ShellCommandInjectionSinkType = EndpointType(
    "ShellCommandInjectionSinkType", 5, "shell-command-injection-sink"
)

# Ordered by encoding. Append only.
ENDPOINT_TYPES: tuple[EndpointType, ...] = (
    NegativeType,
    SqlInjectionSinkType,
    NosqlInjectionSinkType,
    XssSinkType,
    TaintedPathSinkType,
    ShellCommandInjectionSinkType,
)

POSITIVE_TYPES: tuple[EndpointType, ...] = tuple(t for t in ENDPOINT_TYPES if not t.is_negative)


def validate_catalog(types: tuple[EndpointType, ...]) -> None:
    """
    Check the catalog invariants.

    Raises:
        StructuralContractViolation: On a duplicate name or encoding, a
            missing or repeated negative class, a negative encoding, or a
            positive class without a kind.
    """
    seen_names: set[str] = set()
    seen_encodings: set[int] = set()
    negatives = 0

    for endpoint_type in types:
        if endpoint_type.name in seen_names:
            raise StructuralContractViolation(f"Duplicate endpoint type name: {endpoint_type.name}")
        if endpoint_type.encoding in seen_encodings:
            raise StructuralContractViolation(
                f"Duplicate endpoint encoding {endpoint_type.encoding} ({endpoint_type.name})"
            )
        if endpoint_type.encoding < 0:
            raise StructuralContractViolation(
                f"Negative encoding for {endpoint_type.name}: {endpoint_type.encoding}"
            )
        if endpoint_type.is_negative:
            negatives += 1
        elif not endpoint_type.kind:
            raise StructuralContractViolation(f"Endpoint type {endpoint_type.name} has no kind")
        seen_names.add(endpoint_type.name)
        seen_encodings.add(endpoint_type.encoding)

    if negatives != 1:
        raise StructuralContractViolation(
            f"Catalog must contain exactly one negative class, found {negatives}"
        )


validate_catalog(ENDPOINT_TYPES)

_BY_ENCODING: dict[int, EndpointType] = {t.encoding: t for t in ENDPOINT_TYPES}
_BY_KIND: dict[str, EndpointType] = {t.kind: t for t in POSITIVE_TYPES}


def catalog() -> list[tuple[str, int, str]]:
    """Return the ordered (name, encoding, kind) wire list."""
    return [(t.name, t.encoding, t.kind) for t in ENDPOINT_TYPES]


def endpoint_type_for_encoding(encoding: int) -> Optional[EndpointType]:
    return _BY_ENCODING.get(encoding)


def endpoint_type_for_kind(kind: str) -> Optional[EndpointType]:
    return _BY_KIND.get(kind)
