"""
ValidationChecks stage: read-only diagnostics run before any cleaning.

Reports missing values, duplicate rows, range violations and unexpected
categories on the raw dataset. Nothing is removed or rewritten; the counts
go to the audit trail.
"""

from pyspark.sql import DataFrame
from pyspark.sql import functions as F

from clinical_pipeline.core.models import StageResult
from clinical_pipeline.core.rules import PipelineConfig, RuleEngine
from clinical_pipeline.core.validators import RangeValidator, column_ref, numeric_column
from clinical_pipeline.observability.logger import get_logger

from .base import Stage
from .deduplicate import count_duplicates
from .missing_value_report import summarize_missing
from .range_filter import format_bound

logger = get_logger(__name__)


class ValidationChecks(Stage):
    """
    Evaluates the configured rules without changing the dataset.

    Emits, in order: the missing-value check, the duplicate check, the range
    check, the category check, then one result per additional configured
    rule. Checks whose column is absent are recorded with zero hits and a
    `skipped` detail; absence only becomes fatal in the cleaning stages.
    """

    name = "Validate"

    def __init__(self, config: PipelineConfig):
        self.config = config
        self.rules = config.build_rules()
        self.engine = RuleEngine(self.rules, key_field=config.key_field)
        self.key_rule, self.range_rule, self.category_rule = self.rules[:3]
        self.extra_rules = self.rules[3:]

    def apply(self, df: DataFrame) -> tuple[DataFrame, list[StageResult]]:
        records = df.count()
        failures = self.engine.count_failures(df)

        results = [
            self._missing_check(df, failures),
            self._duplicate_check(df, records),
            self._range_check(df, records, failures),
            self._category_check(df, records, failures),
        ]
        for rule in self.extra_rules:
            if not rule.enabled:
                continue
            hits = failures.get(rule.rule_name)
            details = {"rule_type": rule.rule_type, "parameters": dict(rule.parameters)}
            if hits is None:
                details["skipped"] = f"column '{rule.field_name}' not found"
            results.append(
                self.result(
                    f"rule:{rule.rule_name}", records, records, hits or 0,
                    field_name=rule.field_name, severity=rule.severity, **details,
                )
            )

        total_issues = sum(result.records_affected for result in results)
        logger.info(
            f"Validation identified {total_issues} issues",
            extra={"stage": self.name, "records": records, "total_issues": total_issues}
        )
        return df, results

    def _missing_check(self, df: DataFrame, failures: dict[str, int | None]) -> StageResult:
        summary = summarize_missing(df)
        missing_key = failures.get(self.key_rule.rule_name)
        details = {
            "missing_by_variable": summary.by_variable(),
            "pct_missing": {c.variable: c.pct_missing for c in summary.columns},
            "variables_with_missing": summary.variables_with_missing,
            "missing_key": missing_key,
        }
        if missing_key:
            logger.warning(
                f"{missing_key} records are missing {self.config.key_field}",
                extra={"stage": self.name}
            )
        return self.result(
            "missing_values", summary.total_records, summary.total_records, summary.rows_with_missing,
            severity="informational", **details,
        )

    def _duplicate_check(self, df: DataFrame, records: int) -> StageResult:
        duplicates = count_duplicates(df)
        if duplicates:
            logger.warning(f"{duplicates} duplicate rows found", extra={"stage": self.name})
        return self.result("duplicate_rows", records, records, duplicates)

    def _range_check(self, df: DataFrame, records: int, failures: dict[str, int | None]) -> StageResult:
        field = self.config.range_field
        low, high = self.config.range_min, self.config.range_max
        rule_id = f"range:{field}[{format_bound(low)},{format_bound(high)}]"

        if field not in df.columns:
            logger.warning(f"Variable '{field}' not found in dataset", extra={"stage": self.name})
            return self.result(rule_id, records, records, 0, field_name=field, skipped="column not found")

        bounds = RangeValidator(field, {"min": low, "max": high})
        numeric = numeric_column(field)
        stats = df.agg(
            F.min(numeric).alias("min"),
            F.max(numeric).alias("max"),
            F.avg(numeric).alias("mean"),
            F.sum(F.when(bounds.below_min_condition(), 1).otherwise(0)).alias("below_min"),
            F.sum(F.when(bounds.above_max_condition(), 1).otherwise(0)).alias("above_max"),
        ).collect()[0].asDict()

        below = int(stats["below_min"] or 0)
        above = int(stats["above_max"] or 0)
        if below:
            logger.warning(f"{below} {field} values below {format_bound(low)} found", extra={"stage": self.name})
        if above:
            logger.warning(f"{above} {field} values above {format_bound(high)} found", extra={"stage": self.name})

        return self.result(
            rule_id, records, records, failures.get(self.range_rule.rule_name) or 0,
            field_name=field,
            min=stats["min"],
            max=stats["max"],
            mean=round(stats["mean"], 2) if stats["mean"] is not None else None,
            below_min=below,
            above_max=above,
        )

    def _category_check(self, df: DataFrame, records: int, failures: dict[str, int | None]) -> StageResult:
        field = self.config.category_field
        rule_id = f"category:{field}"

        if field not in df.columns:
            logger.warning(f"Variable '{field}' not found in dataset", extra={"stage": self.name})
            return self.result(
                rule_id, records, records, 0,
                field_name=field, severity="informational", skipped="column not found",
            )

        rows = df.groupBy(column_ref(field)).count().orderBy(F.col("count").desc(), column_ref(field)).collect()
        frequencies = [
            {
                "value": row[field],
                "frequency": row["count"],
                "percentage": round(row["count"] / records * 100, 2) if records else 0.0,
            }
            for row in rows
        ]
        unexpected = failures.get(self.category_rule.rule_name) or 0
        if unexpected:
            logger.warning(
                f"{unexpected} records hold unexpected categories in '{field}'",
                extra={"stage": self.name}
            )

        details = {}
        if not self.category_rule.enabled:
            details["skipped"] = "no expected categories configured"

        return self.result(
            rule_id, records, records, unexpected,
            field_name=field, severity="informational", frequencies=frequencies, **details,
        )
