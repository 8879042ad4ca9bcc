"""
Pipeline configuration management.

Loads the flat key-value pipeline configuration from YAML and turns it into
the validation rules and stage parameters used by the runner.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from clinical_pipeline.core.exceptions import ConfigurationError
from clinical_pipeline.core.models import ValidationRule

from .category_mapping import CategoryMapping, chained_keys


class PipelineConfig(BaseModel):
    """
    Rule parameters for one pipeline run.

    Expected YAML format (every key optional):
    ```yaml
    key_field: Patient_ID
    range_field: Age
    range_min: 0
    range_max: 120
    category_field: Sex
    category_mapping:
      M: Male
      F: Female
    expected_categories: [M, F, Male, Female]
    null_value: NA
    audit_dir: reports/audit_trails
    report_dir: reports/data_quality

    # Additional read-only checks, reported by the validation step
    rules:
      Tumor_Size:
        - type: range
          params:
            min: 0
            max: 50
    ```
    """

    key_field: str = "Patient_ID"
    range_field: str = "Age"
    range_min: float = 0
    range_max: float = 120
    category_field: str = "Sex"
    category_mapping: dict[str, str] = Field(default_factory=lambda: {"M": "Male", "F": "Female"})
    expected_categories: list[str] = Field(default_factory=lambda: ["M", "F", "Male", "Female"])
    null_value: str = "NA"
    audit_dir: str = "reports/audit_trails"
    report_dir: str = "reports/data_quality"
    rules: list[ValidationRule] = Field(default_factory=list)

    @field_validator("range_max")
    @classmethod
    def check_bounds(cls, v, info):
        """range_min must not exceed range_max."""
        low = info.data.get("range_min")
        if low is not None and low > v:
            raise ValueError(f"range_min ({low}) is greater than range_max ({v})")
        return v

    @field_validator("category_mapping")
    @classmethod
    def check_mapping(cls, v):
        """Mapping targets must not be mapped again."""
        chained = chained_keys(v)
        if chained:
            raise ValueError(f"Mapping targets are also mapped again: {chained}")
        return v

    @field_validator("rules", mode="before")
    @classmethod
    def expand_field_rules(cls, v):
        """Accept the per-field YAML layout as well as a flat rule list."""
        if isinstance(v, dict):
            return parse_field_rules(v)
        return v

    @property
    def category(self) -> CategoryMapping:
        return CategoryMapping(
            field_name=self.category_field,
            mapping=self.category_mapping,
            expected_categories=self.expected_categories,
        )

    def build_rules(self) -> list[ValidationRule]:
        """Rules evaluated by the validation step: the core checks, then extras."""
        rules = (
            RuleConfigBuilder()
            .add_required_field(self.key_field, severity="fatal")
            .add_range(self.range_field, self.range_min, self.range_max, allow_missing=True)
            .add_category(self.category_field, sorted(self.category.known_values))
            .build()
        )
        rules += list(self.rules)

        names = [rule.rule_name for rule in rules]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ConfigurationError(f"Duplicate rule names: {duplicates}")
        return rules


def parse_field_rules(field_rules: dict[str, Any]) -> list[dict[str, Any]]:
    """
    Parse the per-field rule layout.

    Raises:
        ValueError: If a rule definition is invalid
    """
    rules = []
    for field_name, field_rule_list in field_rules.items():
        if not isinstance(field_rule_list, list):
            raise ValueError(f"Rules for field '{field_name}' must be a list")

        for idx, rule_def in enumerate(field_rule_list):
            if "type" not in rule_def:
                raise ValueError(f"Rule for field '{field_name}' is missing 'type'")

            rule_type = rule_def["type"]
            rules.append({
                "rule_name": rule_def.get("name", f"{field_name}_{rule_type}_{idx}"),
                "rule_type": rule_type,
                "field_name": field_name,
                "parameters": rule_def.get("params", rule_def.get("parameters", {})),
                "severity": rule_def.get("severity", "correctable"),
                "enabled": rule_def.get("enabled", True),
            })
    return rules


class PipelineConfigLoader:
    """
    Loads the pipeline configuration from a YAML file.
    """

    def __init__(self, config_path: str | Path):
        """
        Initialize the config loader.

        Args:
            config_path: Path to the YAML configuration file
        """
        self.config_path = Path(config_path)
        if not self.config_path.exists():
            raise FileNotFoundError(f"Pipeline configuration file not found: {config_path}")

    def load(self) -> PipelineConfig:
        """
        Load and validate the configuration.

        Raises:
            ConfigurationError: If the YAML is invalid or holds invalid values
        """
        with open(self.config_path) as f:
            try:
                raw = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Invalid YAML in {self.config_path}: {e}") from e

        if raw is None:
            raw = {}
        if not isinstance(raw, dict):
            raise ConfigurationError(f"Configuration in {self.config_path} must be a mapping")

        try:
            return PipelineConfig(**raw)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration in {self.config_path}: {e}") from e


def load_config(config_path: str | Path | None = None) -> PipelineConfig:
    """Configuration from a YAML file, or the defaults when no path is given."""
    if config_path is None:
        return PipelineConfig()
    return PipelineConfigLoader(config_path).load()


class RuleConfigBuilder:
    """
    Programmatically build rule configurations (for testing or dynamic rules).
    """

    def __init__(self):
        self.rules: list[ValidationRule] = []

    def add_required_field(
        self,
        field_name: str,
        allow_empty_string: bool = False,
        severity: str = "fatal"
    ) -> "RuleConfigBuilder":
        """Add a required field rule."""
        self.rules.append(ValidationRule(
            rule_name=f"{field_name}_required",
            rule_type="required_field",
            field_name=field_name,
            parameters={"allow_empty_string": allow_empty_string},
            severity=severity,
        ))
        return self

    def add_range(
        self,
        field_name: str,
        min_value: float | None = None,
        max_value: float | None = None,
        allow_missing: bool = False,
        severity: str = "correctable"
    ) -> "RuleConfigBuilder":
        """Add a range validation rule."""
        params: dict[str, Any] = {"allow_missing": allow_missing}
        if min_value is not None:
            params["min"] = min_value
        if max_value is not None:
            params["max"] = max_value

        self.rules.append(ValidationRule(
            rule_name=f"{field_name}_range",
            rule_type="range",
            field_name=field_name,
            parameters=params,
            severity=severity,
        ))
        return self

    def add_category(
        self,
        field_name: str,
        allowed: list[str],
        severity: str = "informational"
    ) -> "RuleConfigBuilder":
        """Add a categorical membership rule; disabled when nothing is allowed."""
        self.rules.append(ValidationRule(
            rule_name=f"{field_name}_category",
            rule_type="category",
            field_name=field_name,
            parameters={"allowed": list(allowed)},
            severity=severity,
            enabled=bool(allowed),
        ))
        return self

    def build(self) -> list[ValidationRule]:
        """Build and return the rule configuration."""
        return self.rules
