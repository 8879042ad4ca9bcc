"""
Unit tests for validation rules.

Includes property-based testing with hypothesis for validators.
"""

import math

import pytest
from hypothesis import given
from hypothesis import strategies as st

from clinical_pipeline.core.validators import (
    CategoryValidator,
    RangeValidator,
    RequiredFieldValidator,
    ValidationError,
    is_missing,
    quote_identifier,
)


class TestIsMissing:
    """Tests for the missing value predicate"""

    def test_none_and_nan_are_missing(self):
        assert is_missing(None)
        assert is_missing(float("nan"))

    def test_present_values_are_not_missing(self):
        assert not is_missing(0)
        assert not is_missing("")
        assert not is_missing("NA")


class TestRequiredFieldValidator:
    """Tests for RequiredFieldValidator"""

    def test_valid_required_field(self):
        """Test validation passes for present field"""
        validator = RequiredFieldValidator("Patient_ID")
        record = {"Patient_ID": "P001"}
        validator.validate(record["Patient_ID"], record)  # Should not raise

    def test_missing_field_raises_error(self):
        """Test validation fails for missing field"""
        validator = RequiredFieldValidator("Patient_ID")
        record = {"Age": 30}

        with pytest.raises(ValidationError) as exc_info:
            validator.validate(None, record)

        assert "missing" in str(exc_info.value).lower()
        assert exc_info.value.field_name == "Patient_ID"

    def test_null_field_raises_error(self):
        """Test validation fails for null field"""
        validator = RequiredFieldValidator("Patient_ID")
        record = {"Patient_ID": None}

        with pytest.raises(ValidationError) as exc_info:
            validator.validate(record["Patient_ID"], record)

        assert "null" in str(exc_info.value).lower()

    def test_nan_field_raises_error(self):
        validator = RequiredFieldValidator("Patient_ID")
        assert not validator.is_valid({"Patient_ID": math.nan})

    def test_empty_string_raises_error(self):
        """Test validation fails for blank string by default"""
        validator = RequiredFieldValidator("Patient_ID")
        record = {"Patient_ID": "   "}

        with pytest.raises(ValidationError) as exc_info:
            validator.validate(record["Patient_ID"], record)

        assert "empty" in str(exc_info.value).lower()

    def test_empty_string_allowed_when_configured(self):
        """Test empty string passes when allow_empty_string=True"""
        validator = RequiredFieldValidator("Patient_ID", {"allow_empty_string": True})
        record = {"Patient_ID": ""}
        validator.validate(record["Patient_ID"], record)  # Should not raise

    @given(st.text(min_size=1).filter(lambda s: s.strip() != ""))
    def test_property_any_nonempty_string_passes(self, value):
        """Property test: any non-empty, non-whitespace string should pass"""
        validator = RequiredFieldValidator("field")
        record = {"field": value}
        validator.validate(record["field"], record)  # Should not raise


class TestRangeValidator:
    """Tests for RangeValidator"""

    def test_value_within_range(self):
        validator = RangeValidator("Age", {"min": 0, "max": 120})
        validator.validate(45, {"Age": 45})  # Should not raise

    def test_bounds_are_inclusive(self):
        validator = RangeValidator("Age", {"min": 0, "max": 120})
        assert validator.is_valid({"Age": 0})
        assert validator.is_valid({"Age": 120})

    def test_value_below_minimum(self):
        validator = RangeValidator("Age", {"min": 0, "max": 120})

        with pytest.raises(ValidationError) as exc_info:
            validator.validate(-1, {"Age": -1})

        assert "less than minimum" in str(exc_info.value)

    def test_value_above_maximum(self):
        validator = RangeValidator("Age", {"min": 0, "max": 120})

        with pytest.raises(ValidationError) as exc_info:
            validator.validate(200, {"Age": 200})

        assert "exceeds maximum" in str(exc_info.value)

    def test_numeric_string_is_parsed(self):
        validator = RangeValidator("Age", {"min": 0, "max": 120})
        assert validator.is_valid({"Age": "62"})
        assert not validator.is_valid({"Age": "200"})

    def test_non_numeric_string_fails(self):
        validator = RangeValidator("Age", {"min": 0, "max": 120})

        with pytest.raises(ValidationError) as exc_info:
            validator.validate("unknown", {"Age": "unknown"})

        assert "not numeric" in str(exc_info.value)

    def test_missing_value_fails_by_default(self):
        validator = RangeValidator("Age", {"min": 0, "max": 120})
        assert not validator.is_valid({"Age": None})
        assert not validator.is_valid({"Age": math.nan})

    def test_missing_value_passes_when_allowed(self):
        validator = RangeValidator("Age", {"min": 0, "max": 120, "allow_missing": True})
        assert validator.is_valid({"Age": None})
        assert not validator.is_valid({"Age": 200})

    def test_requires_a_bound(self):
        with pytest.raises(ValueError, match="at least one"):
            RangeValidator("Age", {})

    def test_rejects_inverted_bounds(self):
        with pytest.raises(ValueError, match="greater than max"):
            RangeValidator("Age", {"min": 120, "max": 0})

    def test_one_sided_range(self):
        validator = RangeValidator("Tumor_Size", {"min": 0})
        assert validator.is_valid({"Tumor_Size": 1e6})
        assert not validator.is_valid({"Tumor_Size": -0.5})

    @given(st.floats(min_value=0, max_value=120, allow_nan=False))
    def test_property_values_in_range_pass(self, value):
        validator = RangeValidator("Age", {"min": 0, "max": 120})
        assert validator.is_valid({"Age": value})

    @given(
        st.one_of(
            st.floats(max_value=-1e-9, allow_nan=False, allow_infinity=False),
            st.floats(min_value=120.000001, allow_nan=False, allow_infinity=False),
        )
    )
    def test_property_values_out_of_range_fail(self, value):
        validator = RangeValidator("Age", {"min": 0, "max": 120})
        assert not validator.is_valid({"Age": value})


class TestCategoryValidator:
    """Tests for CategoryValidator"""

    def test_allowed_value_passes(self):
        validator = CategoryValidator("Sex", {"allowed": ["Male", "Female"]})
        validator.validate("Male", {"Sex": "Male"})  # Should not raise

    def test_unexpected_value_fails(self):
        validator = CategoryValidator("Sex", {"allowed": ["Male", "Female"]})

        with pytest.raises(ValidationError) as exc_info:
            validator.validate("X", {"Sex": "X"})

        assert "'X'" in str(exc_info.value)

    def test_comparison_is_case_sensitive(self):
        validator = CategoryValidator("Sex", {"allowed": ["Male"]})
        assert not validator.is_valid({"Sex": "male"})

    def test_missing_value_passes(self):
        validator = CategoryValidator("Sex", {"allowed": ["Male"]})
        assert validator.is_valid({"Sex": None})

    def test_values_compared_as_strings(self):
        validator = CategoryValidator("Stage", {"allowed": [1, 2, 3]})
        assert validator.is_valid({"Stage": "2"})
        assert validator.is_valid({"Stage": 3})

    def test_requires_allowed_list(self):
        with pytest.raises(ValueError, match="non-empty"):
            CategoryValidator("Sex", {"allowed": []})


def test_quote_identifier_escapes_backticks():
    assert quote_identifier("Age") == "`Age`"
    assert quote_identifier("odd`name") == "`odd``name`"
