"""Tests for the endpoint type taxonomy."""

import pytest

from taintboost.endpoints.types import (
    ENDPOINT_TYPES,
    POSITIVE_TYPES,
    EndpointType,
    NegativeType,
    SqlInjectionSinkType,
    XssSinkType,
    catalog,
    endpoint_type_for_encoding,
    endpoint_type_for_kind,
    validate_catalog,
)
from taintboost.models.base import StructuralContractViolation


class TestCatalog:
    """Test the shipped catalog."""

    def test_encodings_are_injective(self):
        encodings = [t.encoding for t in ENDPOINT_TYPES]
        assert len(encodings) == len(set(encodings))

    def test_exactly_one_zero_encoding(self):
        zero = [t for t in ENDPOINT_TYPES if t.encoding == 0]
        assert zero == [NegativeType]

    def test_kinds_non_empty_except_negative(self):
        assert NegativeType.kind == ""
        assert all(t.kind for t in POSITIVE_TYPES)

    def test_stable_encodings(self):
        """Encodings are a wire contract with the scorer."""
        assert catalog() == [
            ("NegativeType", 0, ""),
            ("SqlInjectionSinkType", 1, "sql-injection-sink"),
            ("NosqlInjectionSinkType", 2, "nosql-injection-sink"),
            ("XssSinkType", 3, "xss-sink"),
            ("TaintedPathSinkType", 4, "tainted-path-sink"),
            ("ShellCommandInjectionSinkType", 5, "shell-command-injection-sink"),
        ]

    def test_reverse_lookups(self):
        assert endpoint_type_for_encoding(1) is SqlInjectionSinkType
        assert endpoint_type_for_kind("xss-sink") is XssSinkType
        assert endpoint_type_for_encoding(99) is None
        assert endpoint_type_for_kind("") is None

    def test_equality_by_value(self):
        assert EndpointType("XssSinkType", 3, "xss-sink") == XssSinkType

    def test_to_dict(self):
        assert SqlInjectionSinkType.to_dict() == {
            "name": "SqlInjectionSinkType",
            "encoding": 1,
            "kind": "sql-injection-sink",
        }


class TestValidateCatalog:
    """Test catalog validation."""

    def test_duplicate_encoding(self):
        with pytest.raises(StructuralContractViolation, match="Duplicate endpoint encoding"):
            validate_catalog((NegativeType, EndpointType("A", 1, "a"), EndpointType("B", 1, "b")))

    def test_second_negative_class(self):
        with pytest.raises(StructuralContractViolation):
            validate_catalog((NegativeType, EndpointType("Other", 0, "")))

    def test_missing_negative_class(self):
        with pytest.raises(StructuralContractViolation, match="exactly one negative"):
            validate_catalog((SqlInjectionSinkType,))

    def test_positive_without_kind(self):
        with pytest.raises(StructuralContractViolation, match="has no kind"):
            validate_catalog((NegativeType, EndpointType("A", 1, "")))

    def test_negative_encoding(self):
        with pytest.raises(StructuralContractViolation, match="Negative encoding"):
            validate_catalog((NegativeType, EndpointType("A", -2, "a")))

    def test_appending_keeps_valid(self):
        extended = ENDPOINT_TYPES + (EndpointType("CodeInjectionSinkType", 6, "code-injection-sink"),)
        validate_catalog(extended)
