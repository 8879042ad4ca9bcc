"""
Unit tests for the declarative categorical mapping.

The mapping is checked here on plain values; applying it to a DataFrame is
covered by the CategoricalStandardize integration tests.
"""

import pytest
from hypothesis import given
from hypothesis import strategies as st
from pydantic import ValidationError

from clinical_pipeline.core.rules import CategoryMapping
from clinical_pipeline.core.rules.category_mapping import chained_keys


@pytest.fixture
def sex_mapping() -> CategoryMapping:
    return CategoryMapping(
        field_name="Sex",
        mapping={"M": "Male", "F": "Female"},
        expected_categories=["Unknown"],
    )


def test_lookup_maps_known_values(sex_mapping):
    assert sex_mapping.lookup("M") == "Male"
    assert sex_mapping.lookup("F") == "Female"


def test_lookup_passes_unmapped_values_through(sex_mapping):
    assert sex_mapping.lookup("X") == "X"
    assert sex_mapping.lookup(None) is None
    assert sex_mapping.lookup(1) == 1


def test_rewrites(sex_mapping):
    assert sex_mapping.rewrites("M")
    assert not sex_mapping.rewrites("Male")
    assert not sex_mapping.rewrites("X")


def test_identity_entries_are_not_rewrites():
    mapping = CategoryMapping(field_name="Sex", mapping={"M": "Male", "Male": "Male"})
    assert mapping.rewritten_keys == ["M"]


def test_known_values_and_expected(sex_mapping):
    assert sex_mapping.known_values == {"M", "F", "Male", "Female", "Unknown"}
    assert sex_mapping.is_expected("Unknown")
    assert sex_mapping.is_expected(None)
    assert not sex_mapping.is_expected("X")


def test_chained_mapping_rejected():
    with pytest.raises(ValidationError, match="mapped again"):
        CategoryMapping(field_name="Sex", mapping={"M": "Male", "Male": "Man"})


def test_chained_keys():
    assert chained_keys({"a": "b", "b": "c"}) == ["a"]
    assert chained_keys({"a": "b", "b": "b"}) == []
    assert chained_keys({"M": "Male", "F": "Female"}) == []


def test_mapping_is_immutable(sex_mapping):
    with pytest.raises(ValidationError):
        sex_mapping.field_name = "Gender"


@given(st.text())
def test_property_lookup_is_idempotent(value):
    """Mapping an already mapped value changes nothing."""
    mapping = CategoryMapping(field_name="Sex", mapping={"M": "Male", "F": "Female"})
    once = mapping.lookup(value)
    assert mapping.lookup(once) == once
