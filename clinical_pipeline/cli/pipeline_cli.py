"""
Command-line interface for the cleaning pipeline.

Usage:
    clinical-pipeline run --input <file_path> --output <file_path> [options]
"""

import argparse
import sys
import time
from pathlib import Path

from pyspark.sql import SparkSession

from clinical_pipeline.batch.pipeline import PipelineRunner
from clinical_pipeline.core.exceptions import ConfigurationError, PipelineError
from clinical_pipeline.core.rules import load_config
from clinical_pipeline.observability.logger import configure_logging, get_logger
from clinical_pipeline.observability.metrics import write_metrics


logger = get_logger(__name__)


def create_spark_session(app_name: str = "ClinicalDataCleaning") -> SparkSession:
    """
    Create Spark session for a local cleaning run.

    Args:
        app_name: Application name

    Returns:
        SparkSession
    """
    spark = SparkSession.builder \
        .appName(app_name) \
        .master("local[*]") \
        .config("spark.ui.enabled", "false") \
        .config("spark.sql.adaptive.enabled", "true") \
        .config("spark.sql.adaptive.coalescePartitions.enabled", "true") \
        .getOrCreate()

    spark.sparkContext.setLogLevel("ERROR")
    return spark


def run_command(args) -> int:
    """
    Execute the cleaning pipeline.

    Args:
        args: Command-line arguments

    Returns:
        Process exit code: 0 when the run exported, 1 otherwise
    """
    try:
        config = load_config(args.config)
    except (FileNotFoundError, ConfigurationError) as e:
        logger.error(f"Cannot load configuration: {e}")
        return 1

    overrides = {}
    if args.audit_dir:
        overrides["audit_dir"] = args.audit_dir
    if args.report_dir:
        overrides["report_dir"] = args.report_dir
    if overrides:
        config = config.model_copy(update=overrides)

    logger.info(f"Input file: {args.input}")
    logger.info(f"Output file: {args.output}")

    spark = create_spark_session()
    exit_code = 0

    try:
        runner = PipelineRunner(spark=spark, config=config)
        start_time = time.time()
        try:
            result = runner.run(args.input, args.output)
        except PipelineError as e:
            logger.error(f"Pipeline failed in state '{runner.state.value}': {e}", exc_info=True)
            if runner.audit_log is not None:
                for line in runner.audit_log.render_summary():
                    logger.info(line)
            if runner.audit_path is not None:
                logger.info(f"Audit trail: {runner.audit_path}")
            exit_code = 1
        except Exception as e:
            logger.error(f"Unexpected error during pipeline run: {e}", exc_info=True)
            exit_code = 1
        else:
            quality = result.metrics

            logger.info("=" * 60)
            logger.info("PIPELINE COMPLETE")
            logger.info("=" * 60)
            for line in result.audit_log.render_summary():
                logger.info(line)
            logger.info("-" * 60)
            logger.info(f"Records imported: {quality.records_imported}")
            logger.info(f"Records exported: {quality.total_records}")
            logger.info(f"Duplicates removed: {quality.duplicate_count}")
            logger.info(f"Missing keys removed: {quality.missing_key_count}")
            logger.info(f"Out of range removed: {quality.out_of_range_count}")
            logger.info(f"Unexpected categories: {quality.unexpected_category_count}")
            logger.info(f"Completeness: {quality.completeness_pct:.2f}%")
            logger.info(f"Duration: {time.time() - start_time:.1f}s")
            logger.info("=" * 60)
            logger.info(f"Cleaned data: {result.output_path}")
            logger.info(f"Audit trail: {result.audit_path}")
            for name, path in result.report_paths.items():
                logger.info(f"Report {name}: {path}")
    finally:
        spark.stop()

    if args.metrics_file:
        write_metrics(args.metrics_file)
        logger.info(f"Metrics written to {args.metrics_file}")

    return exit_code


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="clinical-pipeline",
        description="Clinical tabular data cleaning pipeline",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Clean a CSV with the default rules
  clinical-pipeline run --input data/raw/patients.csv --output data/processed/patients_clean.csv

  # Clean with custom rule parameters and text logs
  clinical-pipeline run --input data/raw/patients.csv --output out/clean.csv \\
      --config config/config.yaml --log-format text

  # Write Prometheus metrics for a node-exporter textfile collector
  clinical-pipeline run --input data/raw/patients.csv --output out/clean.csv \\
      --metrics-file metrics/clinical_pipeline.prom
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    run_parser = subparsers.add_parser("run", help="Clean a CSV file")
    run_parser.add_argument(
        "--input",
        required=True,
        type=Path,
        help="Path to the raw CSV file"
    )
    run_parser.add_argument(
        "--output",
        required=True,
        type=Path,
        help="Path of the cleaned CSV file"
    )
    run_parser.add_argument(
        "--config",
        default=None,
        help="Path to the pipeline configuration YAML (default: built-in rules)"
    )
    run_parser.add_argument(
        "--audit-dir",
        default=None,
        help="Directory for audit trails (overrides config)"
    )
    run_parser.add_argument(
        "--report-dir",
        default=None,
        help="Directory for quality reports (overrides config)"
    )
    run_parser.add_argument(
        "--metrics-file",
        default=None,
        help="Write Prometheus metrics to this file after the run"
    )
    run_parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: INFO)"
    )
    run_parser.add_argument(
        "--log-format",
        default="json",
        choices=["json", "text"],
        help="Log format (default: json)"
    )

    return parser


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    configure_logging(level=args.log_level, format_type=args.log_format)

    if args.command == "run":
        sys.exit(run_command(args))


if __name__ == "__main__":
    main()
