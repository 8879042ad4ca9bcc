"""
Integration tests for the pipeline runner: state transitions, audit trail
persistence and export.
"""

import csv

import pytest

from clinical_pipeline.batch.pipeline import PipelineRunner, PipelineState
from clinical_pipeline.batch.writers import read_audit_trail
from clinical_pipeline.core.exceptions import (
    FatalStageError,
    InputNotFound,
    PipelineCancelled,
    SchemaMismatch,
)
from clinical_pipeline.core.rules import PipelineConfig


def read_rows(path):
    with open(path, newline="") as f:
        return list(csv.reader(f))


@pytest.fixture
def runner(spark, pipeline_config):
    return PipelineRunner(spark, pipeline_config)


@pytest.mark.integration
class TestPipelineRun:
    """Full runs over small CSV inputs"""

    def test_cleans_duplicate_missing_key_and_out_of_range(self, runner, write_csv, scenario_a_rows, tmp_path):
        input_path = write_csv(scenario_a_rows)
        output_path = tmp_path / "processed" / "clean.csv"

        result = runner.run(input_path, output_path)

        assert result.state == PipelineState.EXPORTED
        assert runner.state == PipelineState.EXPORTED
        assert read_rows(output_path) == [
            ["Patient_ID", "Age", "Sex"],
            ["P001", "45", "Male"],
            ["P002", "62", "Female"],
        ]

        log = result.audit_log
        assert log.finalized
        assert log.count_affected("Deduplicate") == 1
        assert log.count_affected("RequireKey") == 1
        assert log.find("RangeFilter")[0].rule_id == "range:Age[0,120]"
        assert log.count_affected("RangeFilter") == 1
        assert log.find("CategoricalStandardize")[0].records_affected == 2

        metrics = result.metrics
        assert metrics.records_imported == 5
        assert metrics.total_records == 2
        assert metrics.completeness_pct == 100.0
        assert metrics.retention_rate_pct == 40.0

    def test_audit_entries_in_stage_order(self, runner, write_csv, scenario_a_rows, tmp_path):
        result = runner.run(write_csv(scenario_a_rows), tmp_path / "clean.csv")

        stages = [entry.stage_name for entry in result.audit_log.entries]
        assert stages == [
            "Import",
            "Validate", "Validate", "Validate", "Validate",
            "Deduplicate",
            "RequireKey",
            "RangeFilter",
            "CategoricalStandardize",
            "MissingValueReport",
        ]
        counts = [(e.records_before, e.records_after) for e in result.audit_log.entries[5:9]]
        assert counts == [(5, 4), (4, 3), (3, 2), (2, 2)]

    def test_audit_trail_and_reports_persisted(self, runner, write_csv, scenario_a_rows, tmp_path):
        result = runner.run(write_csv(scenario_a_rows), tmp_path / "clean.csv")

        assert result.audit_path.name == f"audit_trail_{result.run_id}.jsonl"
        trail = read_audit_trail(result.audit_path)
        assert len(trail) == len(result.audit_log.entries)
        assert trail[0]["stage"] == "Import"
        assert trail[5] | {"timestamp": None, "details": None} == {
            "stage": "Deduplicate",
            "rule_id": "duplicate_rows",
            "records_before": 5,
            "records_after": 4,
            "records_affected": 1,
            "timestamp": None,
            "field_name": None,
            "severity": "correctable",
            "details": None,
        }

        assert set(result.report_paths) == {"quality_metrics", "missing_by_variable"}
        assert all(path.exists() and result.run_id in path.name for path in result.report_paths.values())

    def test_unexpected_category_kept_and_reported(self, runner, write_csv, tmp_path):
        rows = [["P001", "45", "M"], ["P002", "62", "F"], ["P003", "33", "X"]]

        result = runner.run(write_csv(rows), tmp_path / "clean.csv")

        assert [row[2] for row in read_rows(result.output_path)[1:]] == ["Male", "Female", "X"]
        unexpected = result.audit_log.find("CategoricalStandardize", rule_id="unexpected_category")
        assert len(unexpected) == 1
        assert unexpected[0].details["value"] == "X"
        assert result.metrics.unexpected_category_count == 1

    def test_missing_values_written_as_null_token(self, runner, write_csv, tmp_path):
        rows = [["P001", "45", "NA"], ["P002", "62", ""]]

        result = runner.run(write_csv(rows), tmp_path / "clean.csv")

        assert read_rows(result.output_path)[1:] == [["P001", "45", "NA"], ["P002", "62", "NA"]]
        assert result.metrics.completeness_pct == 66.67

    def test_dotted_pass_through_column(self, runner, write_csv, tmp_path):
        rows = [
            ["P001", "45", "M", "2.5"],
            ["P002", "62", "F", "NA"],
            ["P002", "62", "F", "NA"],
            ["P003", "30", "F", "4.1"],
        ]
        input_path = write_csv(rows, header=["Patient_ID", "Age", "Sex", "Tumor.Size"])

        result = runner.run(input_path, tmp_path / "clean.csv")

        assert result.state == PipelineState.EXPORTED
        assert read_rows(result.output_path) == [
            ["Patient_ID", "Age", "Sex", "Tumor.Size"],
            ["P001", "45", "Male", "2.5"],
            ["P002", "62", "Female", "NA"],
            ["P003", "30", "Female", "4.1"],
        ]
        assert result.audit_log.count_affected("Deduplicate") == 1
        assert result.metrics.completeness_pct == 91.67

    def test_consecutive_runs_do_not_collide(self, runner, write_csv, scenario_a_rows, tmp_path):
        input_path = write_csv(scenario_a_rows)

        first = runner.run(input_path, tmp_path / "a.csv")
        second = runner.run(input_path, tmp_path / "b.csv")

        assert first.run_id != second.run_id
        assert first.audit_path != second.audit_path
        assert first.audit_path.exists() and second.audit_path.exists()


@pytest.mark.integration
class TestPipelineFailures:
    """Fatal errors move the runner to FAILED"""

    def test_all_keys_missing_fails_without_export(self, runner, write_csv, pipeline_config, tmp_path):
        input_path = write_csv([["NA", "40", "M"], ["NA", "50", "F"]])
        output_path = tmp_path / "clean.csv"

        with pytest.raises(FatalStageError) as exc_info:
            runner.run(input_path, output_path)

        assert exc_info.value.stage_name == "RequireKey"
        assert runner.state == PipelineState.FAILED
        assert not output_path.exists()
        assert not (tmp_path / "data_quality").exists()

        trail = read_audit_trail(runner.audit_path)
        assert trail[-1]["stage"] == "RequireKey"
        assert trail[-1]["severity"] == "fatal"
        assert trail[-1]["records_after"] == 0
        assert [e["stage"] for e in trail].count("Deduplicate") == 1
        assert runner.audit_log.finalized

    def test_missing_input_raises_before_audit(self, runner, pipeline_config, tmp_path):
        with pytest.raises(InputNotFound):
            runner.run(tmp_path / "missing.csv", tmp_path / "clean.csv")

        assert runner.audit_path is None
        assert not (tmp_path / "audit_trails").exists()

    def test_schema_mismatch(self, spark, write_csv, tmp_path):
        config = PipelineConfig(
            key_field="Subject_ID",
            audit_dir=str(tmp_path / "audit_trails"),
            report_dir=str(tmp_path / "data_quality"),
        )
        runner = PipelineRunner(spark, config)

        with pytest.raises(SchemaMismatch) as exc_info:
            runner.run(write_csv([["P001", "45", "M"]]), tmp_path / "clean.csv")

        assert exc_info.value.column == "Subject_ID"
        assert runner.state == PipelineState.FAILED
        assert runner.audit_path.exists()

    def test_unwritable_audit_dir_keeps_original_error(self, spark, write_csv, tmp_path):
        blocker = tmp_path / "audit_trails"
        blocker.write_text("not a directory")
        config = PipelineConfig(audit_dir=str(blocker), report_dir=str(tmp_path / "data_quality"))
        runner = PipelineRunner(spark, config)

        with pytest.raises(FatalStageError) as exc_info:
            runner.run(write_csv([["NA", "40", "M"]]), tmp_path / "clean.csv")

        assert exc_info.value.stage_name == "RequireKey"
        assert runner.state == PipelineState.FAILED
        assert runner.audit_path is None
        assert runner.audit_log.finalized

    def test_stop_request_cancels_at_step_boundary(self, runner, write_csv, scenario_a_rows, tmp_path):
        runner.request_stop()

        with pytest.raises(PipelineCancelled):
            runner.run(write_csv(scenario_a_rows), tmp_path / "clean.csv")

        assert runner.state == PipelineState.FAILED
        assert read_audit_trail(runner.audit_path) == []
        assert not (tmp_path / "clean.csv").exists()

    def test_cleaning_stage_order(self, runner):
        assert [stage.name for stage in runner.cleaning_stages()] == [
            "Deduplicate", "RequireKey", "RangeFilter", "CategoricalStandardize"
        ]
