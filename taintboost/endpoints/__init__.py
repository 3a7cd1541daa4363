"""Endpoint taxonomy, characteristics, labellers and configurations."""

from taintboost.endpoints.characteristics import (
    GLOBAL_CHARACTERISTICS,
    Characteristic,
    CharacteristicFamily,
    Implication,
    exclusion_reasons,
    is_excluded,
    is_known,
    make_characteristic,
)
from taintboost.endpoints.classifier import (
    ClassificationReport,
    EndpointClassifier,
    NodeClassification,
    classify_graph,
)
from taintboost.endpoints.configuration import (
    EndpointConfiguration,
    FlowEngine,
    FlowPath,
    FlowPredicates,
    QueryKind,
    QuerySpec,
)
from taintboost.endpoints.labels import (
    DEFAULT_REGISTRY,
    Labeller,
    LabellerRegistry,
    labels_for,
    nodes_with_label,
)
from taintboost.endpoints.types import (
    ENDPOINT_TYPES,
    EndpointType,
    NegativeType,
    NosqlInjectionSinkType,
    ShellCommandInjectionSinkType,
    SqlInjectionSinkType,
    TaintedPathSinkType,
    XssSinkType,
    catalog,
)

__all__ = [
    # Taxonomy
    "ENDPOINT_TYPES",
    "EndpointType",
    "NegativeType",
    "NosqlInjectionSinkType",
    "ShellCommandInjectionSinkType",
    "SqlInjectionSinkType",
    "TaintedPathSinkType",
    "XssSinkType",
    "catalog",
    # Characteristics
    "GLOBAL_CHARACTERISTICS",
    "Characteristic",
    "CharacteristicFamily",
    "Implication",
    "exclusion_reasons",
    "is_excluded",
    "is_known",
    "make_characteristic",
    # Labellers
    "DEFAULT_REGISTRY",
    "Labeller",
    "LabellerRegistry",
    "labels_for",
    "nodes_with_label",
    # Configuration
    "EndpointConfiguration",
    "FlowEngine",
    "FlowPath",
    "FlowPredicates",
    "QueryKind",
    "QuerySpec",
    # Classification
    "ClassificationReport",
    "EndpointClassifier",
    "NodeClassification",
    "classify_graph",
]
