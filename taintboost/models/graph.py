"""
Graph provider interface and in-memory snapshot.

The data-flow graph is owned by the host analysis. This module defines:
- DataFlowNode: immutable view of one graph node, referenced by node_id
- GraphProvider: the read-only queries the classification layer needs
- GraphSnapshot: dictionary-backed provider, loadable from YAML or JSON
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Iterator, Mapping, Optional

import yaml

from taintboost.models.base import SnapshotError


def _frozen(values: Any) -> frozenset[str]:
    if not values:
        return frozenset()
    if isinstance(values, str):
        return frozenset([values])
    return frozenset(str(v) for v in values)


def _parts(values: Any) -> tuple[str, ...]:
    if values is None:
        return ()
    if isinstance(values, str):
        return (values,)
    return tuple(str(v) for v in values)


@dataclass(frozen=True)
class DataFlowNode:
    """
    Immutable record of a data-flow graph node.

    The structural fields are filled in by the graph provider; this layer
    only reads them. known_sources and known_sinks hold the vulnerability
    class ids that the existing (non-ML) classifiers already assign.
    """

    node_id: str
    kind: str = "argument"  # argument, parameter, property-write, call, ...
    callee_name: Optional[str] = None
    receiver_name: Optional[str] = None
    argument_index: Optional[int] = None
    is_external_call: bool = False
    flows_to_external_call: bool = False
    property_name: Optional[str] = None
    string_value: Optional[str] = None
    concatenation_parts: tuple[str, ...] = ()
    is_html_concatenation_leaf: bool = False
    is_constant: bool = False
    known_sources: frozenset[str] = field(default_factory=frozenset)
    known_sinks: frozenset[str] = field(default_factory=frozenset)
    sanitizes: frozenset[str] = field(default_factory=frozenset)
    file_path: Optional[Path] = None
    line: int = 0
    enclosing_function: Optional[str] = None
    in_test_file: bool = False

    def __post_init__(self) -> None:
        """Normalise collection and path fields."""
        object.__setattr__(self, "known_sources", _frozen(self.known_sources))
        object.__setattr__(self, "known_sinks", _frozen(self.known_sinks))
        object.__setattr__(self, "sanitizes", _frozen(self.sanitizes))
        object.__setattr__(self, "concatenation_parts", _parts(self.concatenation_parts))
        if isinstance(self.file_path, str):
            object.__setattr__(self, "file_path", Path(self.file_path))

    @property
    def is_argument(self) -> bool:
        return self.kind == "argument"

    @property
    def is_property_write(self) -> bool:
        return self.kind == "property-write"

    @property
    def location_key(self) -> str:
        """Unique key for this node's source location."""
        return f"{self.file_path}:{self.line}"

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "node_id": self.node_id,
            "kind": self.kind,
            "callee_name": self.callee_name,
            "receiver_name": self.receiver_name,
            "argument_index": self.argument_index,
            "is_external_call": self.is_external_call,
            "flows_to_external_call": self.flows_to_external_call,
            "property_name": self.property_name,
            "string_value": self.string_value,
            "concatenation_parts": list(self.concatenation_parts),
            "is_html_concatenation_leaf": self.is_html_concatenation_leaf,
            "is_constant": self.is_constant,
            "known_sources": sorted(self.known_sources),
            "known_sinks": sorted(self.known_sinks),
            "sanitizes": sorted(self.sanitizes),
            "file_path": str(self.file_path) if self.file_path else None,
            "line": self.line,
            "enclosing_function": self.enclosing_function,
            "in_test_file": self.in_test_file,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DataFlowNode":
        """Deserialize from dictionary."""
        if "node_id" not in data:
            raise SnapshotError(f"Node entry without node_id: {data!r}")
        try:
            return cls(
                node_id=str(data["node_id"]),
                kind=data.get("kind", "argument"),
                callee_name=data.get("callee_name"),
                receiver_name=data.get("receiver_name"),
                argument_index=data.get("argument_index"),
                is_external_call=bool(data.get("is_external_call", False)),
                flows_to_external_call=bool(data.get("flows_to_external_call", False)),
                property_name=data.get("property_name"),
                string_value=data.get("string_value"),
                concatenation_parts=_parts(data.get("concatenation_parts")),
                is_html_concatenation_leaf=bool(data.get("is_html_concatenation_leaf", False)),
                is_constant=bool(data.get("is_constant", False)),
                known_sources=_frozen(data.get("known_sources")),
                known_sinks=_frozen(data.get("known_sinks")),
                sanitizes=_frozen(data.get("sanitizes")),
                file_path=data.get("file_path"),
                line=int(data.get("line", 0)),
                enclosing_function=data.get("enclosing_function"),
                in_test_file=bool(data.get("in_test_file", False)),
            )
        except (TypeError, ValueError) as e:
            raise SnapshotError(f"Invalid field in node {data['node_id']!r}: {e}") from e


class GraphProvider(ABC):
    """Read-only access to a data-flow graph snapshot."""

    @abstractmethod
    def nodes(self) -> list[DataFlowNode]:
        """Return every node in a stable order."""
        pass

    @abstractmethod
    def get(self, node_id: str) -> Optional[DataFlowNode]:
        """Look up a node by identity."""
        pass

    @abstractmethod
    def step_tags(self, from_id: str, to_id: str) -> frozenset[str]:
        """Return the tags of additional flow steps between two nodes."""
        pass

    def __iter__(self) -> Iterator[DataFlowNode]:
        return iter(self.nodes())

    def __len__(self) -> int:
        return len(self.nodes())


class GraphSnapshot(GraphProvider):
    """
    Dictionary-backed graph snapshot.

    Nodes and step tags are stored in read-only mappings so the snapshot can
    be shared across worker threads.
    """

    def __init__(
        self,
        nodes: list[DataFlowNode],
        steps: Optional[Mapping[tuple[str, str], frozenset[str]]] = None,
    ) -> None:
        index: dict[str, DataFlowNode] = {}
        for node in nodes:
            if node.node_id in index:
                raise SnapshotError(f"Duplicate node id: {node.node_id}")
            index[node.node_id] = node
        self._order = tuple(index)
        self._nodes = MappingProxyType(index)
        self._steps = MappingProxyType(
            {key: _frozen(tags) for key, tags in (steps or {}).items()}
        )

    def nodes(self) -> list[DataFlowNode]:
        return [self._nodes[node_id] for node_id in self._order]

    def get(self, node_id: str) -> Optional[DataFlowNode]:
        return self._nodes.get(node_id)

    def step_tags(self, from_id: str, to_id: str) -> frozenset[str]:
        return self._steps.get((from_id, to_id), frozenset())

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "nodes": [node.to_dict() for node in self.nodes()],
            "steps": [
                {"from": a, "to": b, "tags": sorted(tags)}
                for (a, b), tags in self._steps.items()
            ],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GraphSnapshot":
        """Deserialize from dictionary."""
        if not isinstance(data, dict):
            raise SnapshotError("Graph snapshot must be a mapping")
        nodes = [DataFlowNode.from_dict(entry) for entry in data.get("nodes", [])]
        steps: dict[tuple[str, str], frozenset[str]] = {}
        for entry in data.get("steps", []):
            try:
                key = (str(entry["from"]), str(entry["to"]))
            except KeyError as e:
                raise SnapshotError(f"Flow step missing field {e}") from e
            steps[key] = steps.get(key, frozenset()) | _frozen(entry.get("tags", ["*"]))
        return cls(nodes, steps)


def load_snapshot(path: Path) -> GraphSnapshot:
    """
    Load a graph snapshot from a YAML or JSON file.

    Args:
        path: Path to the snapshot document

    Returns:
        GraphSnapshot built from the document

    Raises:
        SnapshotError: If the file is missing or malformed
    """
    path = Path(path)
    if not path.exists():
        raise SnapshotError(f"Snapshot not found: {path}")
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise SnapshotError(f"Invalid snapshot document {path}: {e}") from e
    return GraphSnapshot.from_dict(data)
