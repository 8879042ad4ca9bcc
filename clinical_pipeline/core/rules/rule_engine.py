"""
Rule engine for orchestrating validation rules.

The rule engine turns ValidationRule models into validators, applies them to
single records, and counts rule hits over a whole DataFrame.
"""

from typing import Any

from pyspark.sql import DataFrame
from pyspark.sql import functions as F

from clinical_pipeline.core.models import ValidationResult, ValidationRule
from clinical_pipeline.core.validators import (
    BaseValidator,
    CategoryValidator,
    RangeValidator,
    RequiredFieldValidator,
    ValidationError,
)


class RuleEngine:
    """
    Orchestrates validation rules on records and datasets.

    Rules are applied in order; every rule is evaluated even after an earlier
    one fails so the result lists all failures.
    """

    VALIDATOR_REGISTRY = {
        "required_field": RequiredFieldValidator,
        "range": RangeValidator,
        "category": CategoryValidator,
    }

    def __init__(self, rules: list[ValidationRule], key_field: str | None = None):
        """
        Initialize the rule engine with validation rules.

        Args:
            rules: Rule models; disabled rules are skipped
            key_field: Field used to label per-record results
        """
        self.rules = rules
        self.key_field = key_field
        self.validators: list[tuple[ValidationRule, BaseValidator]] = []
        self._build_validators()

    def _build_validators(self) -> None:
        """Build validator instances from rule configurations."""
        for rule in self.rules:
            if not rule.enabled:
                continue

            validator_class = self.VALIDATOR_REGISTRY.get(rule.rule_type)
            if not validator_class:
                raise ValueError(f"Unknown rule type: {rule.rule_type}")

            try:
                validator = validator_class(rule.field_name, dict(rule.parameters))
            except ValueError as e:
                raise ValueError(f"Failed to create validator for rule '{rule.rule_name}': {e}") from e
            self.validators.append((rule, validator))

    def validate_record(self, record: dict[str, Any]) -> ValidationResult:
        """
        Validate a single record against all rules.

        Args:
            record: Column name -> value

        Returns:
            ValidationResult with passed, failed and warning rule names
        """
        passed_rules = []
        failed_rules = []
        warnings = []

        for rule, validator in self.validators:
            try:
                validator.validate(record.get(rule.field_name), record)
                passed_rules.append(rule.rule_name)
            except ValidationError:
                if rule.severity == "informational":
                    warnings.append(rule.rule_name)
                else:
                    failed_rules.append(rule.rule_name)

        key = record.get(self.key_field) if self.key_field else None

        return ValidationResult(
            record_key=None if key is None else str(key),
            passed=len(failed_rules) == 0,
            passed_rules=passed_rules,
            failed_rules=failed_rules,
            warnings=warnings,
        )

    def validate_batch(self, records: list[dict[str, Any]]) -> list[ValidationResult]:
        """Validate a list of records, one result per record."""
        return [self.validate_record(record) for record in records]

    def count_failures(self, df: DataFrame) -> dict[str, int | None]:
        """
        Count the rows failing each rule in a single pass over the DataFrame.

        Returns:
            rule_name -> failing row count, None when the rule's field is absent
        """
        dtypes = {field.name: field.dataType for field in df.schema.fields}
        aggregations = []
        aliases: dict[str, str] = {}
        counts: dict[str, int | None] = {}

        for idx, (rule, validator) in enumerate(self.validators):
            if rule.field_name not in dtypes:
                counts[rule.rule_name] = None
                continue
            condition = validator.failure_condition(dtypes[rule.field_name])
            aggregations.append(
                F.sum(F.when(condition, 1).otherwise(0)).alias(f"rule_{idx}")
            )
            aliases[f"rule_{idx}"] = rule.rule_name
            counts[rule.rule_name] = 0

        if aggregations:
            row = df.agg(*aggregations).collect()[0].asDict()
            for alias, value in row.items():
                counts[aliases[alias]] = int(value or 0)

        return counts

    def rules_for(self, field_name: str) -> list[ValidationRule]:
        return [rule for rule, _ in self.validators if rule.field_name == field_name]

    def get_rule_summary(self) -> dict[str, Any]:
        """
        Get summary of loaded rules.

        Returns:
            Dictionary with rule counts and types
        """
        return {
            "total_rules": len(self.validators),
            "rules_by_type": self._count_by(lambda rule: rule.rule_type),
            "rules_by_severity": self._count_by(lambda rule: rule.severity),
        }

    def _count_by(self, key) -> dict[str, int]:
        counts: dict[str, int] = {}
        for rule, _ in self.validators:
            counts[key(rule)] = counts.get(key(rule), 0) + 1
        return counts
