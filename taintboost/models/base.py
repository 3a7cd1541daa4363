"""
Core enums and error types used throughout taintboost.

This module defines:
- The ordered confidence scale used by characteristics
- Source and sink axis outcomes for a classified node
- The error taxonomy (structural violations, ambiguity records)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class Confidence(Enum):
    """Ordered confidence levels backed by a single numeric scale."""

    NONE = 0.0
    LOW = 0.3
    MEDIUM = 0.6
    HIGH = 0.9
    MAXIMAL = 1.0

    @classmethod
    def from_string(cls, value: str) -> "Confidence":
        """Create Confidence from its name, case-insensitive."""
        return cls[value.upper()]

    def __lt__(self, other: "Confidence") -> bool:
        if not isinstance(other, Confidence):
            return NotImplemented
        return self.value < other.value

    def __le__(self, other: "Confidence") -> bool:
        if not isinstance(other, Confidence):
            return NotImplemented
        return self.value <= other.value

    def __gt__(self, other: "Confidence") -> bool:
        if not isinstance(other, Confidence):
            return NotImplemented
        return self.value > other.value

    def __ge__(self, other: "Confidence") -> bool:
        if not isinstance(other, Confidence):
            return NotImplemented
        return self.value >= other.value


class SourceStatus(Enum):
    """Source axis outcome for a node under one configuration."""

    NOT_A_SOURCE = "not_a_source"
    KNOWN_SOURCE = "known_source"
    EFFECTIVE_SOURCE = "effective_source"


class SinkStatus(Enum):
    """Sink axis outcome for a node under one configuration."""

    NOT_A_SINK = "not_a_sink"
    KNOWN_SINK = "known_sink"
    EFFECTIVE_SINK = "effective_sink"
    EXCLUDED = "excluded"


class TaintBoostError(Exception):
    """Base class for taintboost errors."""

    pass


class StructuralContractViolation(TaintBoostError):
    """
    Raised when a catalog, labeller registry or configuration is malformed.

    Always raised while building the object, never during analysis.
    """

    pass


class SnapshotError(TaintBoostError):
    """Raised when a graph snapshot document cannot be read."""

    pass


class ScoringError(TaintBoostError):
    """Raised when the external scorer answers with malformed results."""

    pass


@dataclass(frozen=True)
class AmbiguousClassification:
    """
    A node carrying maximal positive evidence for mutually exclusive types.

    Reported alongside the classification, never raised.
    """

    node_id: str
    type_names: tuple[str, ...]

    @property
    def message(self) -> str:
        return (
            f"Node {self.node_id} is a known endpoint of several types: "
            f"{', '.join(self.type_names)}"
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {"node_id": self.node_id, "types": list(self.type_names)}
