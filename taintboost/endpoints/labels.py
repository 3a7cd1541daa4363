"""
Labeller registry.

Labellers attach human-readable reasons to nodes for audit tooling. Each
labeller owns a namespace (its range) and every label it produces has the
form "<range>:<detail>". The registry checks at build time that ranges are
well-formed and disjoint.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

from taintboost.endpoints.characteristics import (
    GLOBAL_CHARACTERISTICS,
    applicable_characteristics,
)
from taintboost.models.base import StructuralContractViolation
from taintboost.models.graph import DataFlowNode, GraphProvider

LABEL_SEPARATOR = ":"
CHARACTERISTIC_RANGE = "characteristic"


@dataclass(frozen=True)
class Labeller:
    """A named rule producing labels inside its own namespace."""

    range: str
    emit: Callable[[DataFlowNode], Iterable[str]] = field(compare=False, repr=False)
    description: str = field(default="", compare=False)

    def __post_init__(self) -> None:
        if not self.range:
            raise StructuralContractViolation("Labeller range must not be empty")
        if LABEL_SEPARATOR in self.range:
            raise StructuralContractViolation(
                f"Labeller range {self.range!r} must not contain {LABEL_SEPARATOR!r}"
            )

    @property
    def prefix(self) -> str:
        return f"{self.range}{LABEL_SEPARATOR}"

    def label(self, node: DataFlowNode) -> tuple[str, ...]:
        """Labels for the node, each inside this labeller's range."""
        return tuple(sorted({f"{self.prefix}{detail}" for detail in self.emit(node) if detail}))

    def owns(self, label: str) -> bool:
        return label.startswith(self.prefix)


class LabellerRegistry:
    """
    Process-wide set of labellers.

    Provides the union of labels for a node and the reverse lookup from a
    label to the nodes carrying it.
    """

    def __init__(self, labellers: Iterable[Labeller]) -> None:
        self._labellers = tuple(labellers)
        # Ranges cannot contain the separator, so distinct ranges never overlap
        self._by_range: dict[str, Labeller] = {}
        for labeller in self._labellers:
            if labeller.range in self._by_range:
                raise StructuralContractViolation(f"Duplicate labeller range: {labeller.range}")
            self._by_range[labeller.range] = labeller

    @property
    def labellers(self) -> tuple[Labeller, ...]:
        return self._labellers

    @property
    def ranges(self) -> list[str]:
        return [labeller.range for labeller in self._labellers]

    def labels_for(self, node: DataFlowNode) -> list[str]:
        """Sorted union of every labeller's labels for the node."""
        labels: set[str] = set()
        for labeller in self._labellers:
            labels.update(labeller.label(node))
        return sorted(labels)

    def owner_of(self, label: str) -> Optional[Labeller]:
        """Return the labeller whose range contains the label."""
        range_name, sep, _ = label.partition(LABEL_SEPARATOR)
        if not sep:
            return None
        return self._by_range.get(range_name)

    def nodes_with_label(self, label: str, graph: GraphProvider) -> list[str]:
        """Ids of the nodes carrying the label, in graph order."""
        labeller = self.owner_of(label)
        if labeller is None:
            return []
        return [node.node_id for node in graph.nodes() if label in labeller.label(node)]


def _characteristic_labels(node: DataFlowNode) -> list[str]:
    # Global rules only; EndpointClassifier adds the query refinements
    return [c.name for c in applicable_characteristics(node, GLOBAL_CHARACTERISTICS)]


def _known_labels(node: DataFlowNode) -> list[str]:
    labels = [f"source-{class_id}" for class_id in node.known_sources]
    labels.extend(f"sink-{class_id}" for class_id in node.known_sinks)
    return labels


def _structure_labels(node: DataFlowNode) -> list[str]:
    labels: list[str] = []
    if node.is_argument and node.is_external_call:
        labels.append("external-call-argument")
    if node.flows_to_external_call:
        labels.append("flows-to-external-call")
    if node.is_argument and node.callee_name:
        labels.append(f"argument-of-{node.callee_name}")
    if node.is_property_write and node.property_name:
        labels.append(f"property-write-{node.property_name}")
    if node.is_constant:
        labels.append("constant")
    return labels


def _sanitizer_labels(node: DataFlowNode) -> list[str]:
    return list(node.sanitizes)


DEFAULT_LABELLERS: tuple[Labeller, ...] = (
    Labeller(CHARACTERISTIC_RANGE, _characteristic_labels, "Applicable characteristics"),
    Labeller("known", _known_labels, "Classes assigned by the base classifiers"),
    Labeller("structure", _structure_labels, "Structural position in the graph"),
    Labeller("sanitizer", _sanitizer_labels, "Sanitizer classes applied to the value"),
)

DEFAULT_REGISTRY = LabellerRegistry(DEFAULT_LABELLERS)


def labels_for(node: DataFlowNode) -> list[str]:
    return DEFAULT_REGISTRY.labels_for(node)


def nodes_with_label(label: str, graph: GraphProvider) -> list[str]:
    return DEFAULT_REGISTRY.nodes_with_label(label, graph)
