"""
Declarative categorical recoding (field -> {old value -> new value}).

The mapping is plain data so it can be checked on its own, separately from
the stage that applies it to a DataFrame.
"""

from typing import Any

from pydantic import BaseModel, Field, field_validator
from pyspark.sql import Column
from pyspark.sql import functions as F

from clinical_pipeline.core.validators.base_validator import column_ref


def chained_keys(mapping: dict[str, str]) -> list[str]:
    """Keys whose target is itself rewritten by the mapping."""
    return sorted(
        key for key, target in mapping.items()
        if target != key and target in mapping and mapping[target] != target
    )


class CategoryMapping(BaseModel):
    """
    Lookup table rewriting values of one categorical field.

    Attributes:
        field_name: Column the mapping applies to
        mapping: Old value -> new value; values absent from it pass through
        expected_categories: Extra values accepted without a warning
    """

    field_name: str = Field(..., min_length=1)
    mapping: dict[str, str] = Field(default_factory=dict)
    expected_categories: list[str] = Field(default_factory=list)

    @field_validator("mapping")
    @classmethod
    def check_not_chained(cls, v):
        """Targets must be unmapped or map to themselves."""
        chained = chained_keys(v)
        if chained:
            raise ValueError(f"Mapping targets are also mapped again: {chained}")
        return v

    def lookup(self, value: Any) -> Any:
        """Mapped value, or the value itself when unmapped."""
        if isinstance(value, str):
            return self.mapping.get(value, value)
        return value

    def rewrites(self, value: Any) -> bool:
        return isinstance(value, str) and self.lookup(value) != value

    @property
    def rewritten_keys(self) -> list[str]:
        """Source values whose target differs from themselves."""
        return [key for key, target in self.mapping.items() if key != target]

    @property
    def known_values(self) -> set[str]:
        """Values that never trigger an unexpected-category warning."""
        return set(self.mapping) | set(self.mapping.values()) | set(self.expected_categories)

    def is_expected(self, value: Any) -> bool:
        return value is None or value in self.known_values

    def to_column(self) -> Column:
        """Spark expression applying the mapping to field_name."""
        column = column_ref(self.field_name)
        keys = self.rewritten_keys
        if not keys:
            return column

        expression = None
        for key in keys:
            target = F.lit(self.mapping[key])
            if expression is None:
                expression = F.when(column == key, target)
            else:
                expression = expression.when(column == key, target)
        return expression.otherwise(column)

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "field_name": "Sex",
                "mapping": {"M": "Male", "F": "Female"},
                "expected_categories": ["M", "F", "Male", "Female"],
            }
        }
