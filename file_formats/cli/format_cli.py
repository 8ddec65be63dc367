"""
Command-line interface for file format conversion.

Usage:
    python -m file_formats.cli.format_cli convert --input <path> --input-format csv \\
        --schema <schemas.yaml> --output <dir> --output-format thrift [options]
    python -m file_formats.cli.format_cli validate --config <sink.yaml>
    python -m file_formats.cli.format_cli formats
"""

import argparse
import json
import sys
import time
from datetime import datetime, timezone

from pyspark.sql import SparkSession

from file_formats.batch.pipeline import BatchFormatPipeline
from file_formats.core.config import SinkConfigBuilder, SinkConfigLoader
from file_formats.core.errors import ConfigError
from file_formats.core.schema import SchemaRegistry
from file_formats.formats.registry import get_codec_class, list_formats
from file_formats.observability.logger import get_logger

logger = get_logger(__name__)


def create_spark_session(app_name: str = "FileFormatConversion") -> SparkSession:
    """
    Create Spark session for conversion jobs.

    Args:
        app_name: Application name

    Returns:
        SparkSession
    """
    spark = SparkSession.builder \
        .appName(app_name) \
        .master("local[*]") \
        .config("spark.sql.adaptive.enabled", "true") \
        .getOrCreate()

    return spark


def parse_properties(pairs: list[str] | None) -> dict[str, str]:
    """
    Parse repeated key=value arguments.

    Raises:
        ConfigError: If an entry has no '='
    """
    properties = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise ConfigError(f"Property '{pair}' must have the form key=value", "property")
        properties[key.strip()] = value.strip()
    return properties


def parse_logical_time(value: str | None) -> int | datetime:
    """
    Parse the logical start time argument.

    Accepts epoch milliseconds or an ISO-8601 timestamp; defaults to now.
    """
    if not value:
        return int(time.time() * 1000)
    if value.isdigit():
        return int(value)
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError as e:
        raise ConfigError(f"Invalid logical time '{value}': {e}", "logical_time") from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def convert_command(args):
    """
    Convert input files into another format through a file sink.

    Args:
        args: Command-line arguments
    """
    logger.info(f"Converting {args.input} from {args.input_format}")

    spark = None
    try:
        registry = SchemaRegistry()
        loaded = registry.load_yaml(args.schema)
        schema_name = args.schema_name or (loaded[0] if len(loaded) == 1 else None)
        if schema_name is None:
            raise ConfigError("Schema file defines several schemas, choose one with --schema-name")
        schema = registry.get(schema_name)

        if args.config:
            sink_config = SinkConfigLoader(args.config, registry).load()
        else:
            if not args.output:
                raise ConfigError("Either --config or --output is required", "output")
            builder = SinkConfigBuilder(args.reference_name, args.output).with_format(args.output_format)
            if args.suffix:
                builder.with_suffix(args.suffix)
            for key, value in parse_properties(args.property).items():
                builder.with_property(key, value)
            sink_config = builder.build()

        if args.spark:
            logger.info("Creating Spark session...")
            spark = create_spark_session(f"FileFormatConversion-{sink_config.reference_name}")

        pipeline = BatchFormatPipeline(
            spark=spark,
            input_format=args.input_format,
            schema=schema,
            input_properties=parse_properties(args.input_property),
            path_field=args.path_field,
            max_split_size=args.max_split_size,
            combine_small_files=args.combine_small_files,
            input_reference_name=args.input_reference_name,
        )
        result = pipeline.run(args.input, sink_config, parse_logical_time(args.logical_time))

        print(f"\n{'=' * 60}")
        print("CONVERSION COMPLETE")
        print(f"{'=' * 60}")
        print(f"Splits processed:   {result['splits']}")
        print(f"Records read:       {result['records_read']}")
        print(f"Records written:    {result['records_written']}")
        print(f"Records rejected:   {result['records_rejected']}")
        print(f"Output directory:   {result['output_dir']}")
        for sample in result["error_samples"]:
            print(f"  rejected: {sample['message']}")
        print(f"{'=' * 60}\n")

        if args.summary_json:
            print(json.dumps(result, default=str))

    except Exception as e:
        logger.error(f"Error during conversion: {e}", exc_info=True)
        print(f"\nError: {e}")
        sys.exit(1)
    finally:
        if spark is not None:
            spark.stop()


def validate_command(args):
    """
    Validate every sink of a YAML configuration file.

    Args:
        args: Command-line arguments
    """
    try:
        registry = SchemaRegistry()
        if args.schema:
            registry.load_yaml(args.schema)
        sinks = SinkConfigLoader(args.config, registry).load_sinks()
    except ConfigError as e:
        print(f"\nError: {e}")
        sys.exit(1)

    failures = 0
    for sink_config in sinks:
        try:
            sink_config.validate_config()
            print(f"  OK       {sink_config.reference_name} ({sink_config.format} -> {sink_config.path})")
        except ConfigError as e:
            failures += 1
            print(f"  INVALID  {sink_config.reference_name}: {e}")

    print(f"\n{len(sinks) - failures}/{len(sinks)} sink configurations valid")
    if failures:
        sys.exit(1)


def formats_command(args):
    """
    List registered formats.

    Args:
        args: Command-line arguments
    """
    print(f"{'FORMAT':<12} {'KIND':<8} {'EXT':<10} {'WRITABLE':<9} FULL FIDELITY")
    for name, kind in sorted(list_formats().items()):
        codec_cls = get_codec_class(name)
        print(
            f"{name:<12} {kind:<8} {codec_cls.extension:<10} "
            f"{str(codec_cls.writable).lower():<9} {str(codec_cls.full_fidelity).lower()}"
        )


def main(argv: list[str] | None = None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Schema-driven file format conversion",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Convert CSV files into Thrift lines under a daily directory
  python -m file_formats.cli.format_cli convert --input data/events.csv --input-format csv \\
      --input-property skip_header=true --schema config/schemas.yaml \\
      --output /tmp/events --output-format thrift --suffix yyyy-MM-dd

  # Convert using a sink definition file, tracking the source file path
  python -m file_formats.cli.format_cli convert --input data/ --input-format json \\
      --schema config/schemas.yaml --config config/sink.yaml --path-field source_file

  # Validate sink definitions
  python -m file_formats.cli.format_cli validate --config config/sink.yaml
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Convert command
    convert_parser = subparsers.add_parser("convert", help="Convert files between formats")
    convert_parser.add_argument(
        "--input",
        required=True,
        nargs="+",
        help="Input files or directories"
    )
    convert_parser.add_argument(
        "--input-format",
        required=True,
        help="Format of the input files"
    )
    convert_parser.add_argument(
        "--input-property",
        action="append",
        help="Input format property as key=value (repeatable)"
    )
    convert_parser.add_argument(
        "--schema",
        required=True,
        help="YAML file with a 'schemas' section"
    )
    convert_parser.add_argument(
        "--schema-name",
        help="Schema to use when the file defines several"
    )
    convert_parser.add_argument(
        "--path-field",
        help="String field receiving the source file path"
    )
    convert_parser.add_argument(
        "--config",
        help="Sink YAML configuration, replaces the output options"
    )
    convert_parser.add_argument(
        "--output",
        help="Base output directory"
    )
    convert_parser.add_argument(
        "--output-format",
        default="json",
        help="Output format (default: json)"
    )
    convert_parser.add_argument(
        "--suffix",
        default="",
        help="Time suffix pattern, e.g. yyyy-MM-dd-HH-mm"
    )
    convert_parser.add_argument(
        "--property",
        action="append",
        help="Output format property as key=value (repeatable)"
    )
    convert_parser.add_argument(
        "--reference-name",
        default="file_output",
        help="Reference name of the output (default: file_output)"
    )
    convert_parser.add_argument(
        "--input-reference-name",
        help="Reference name of the input, enables read lineage"
    )
    convert_parser.add_argument(
        "--logical-time",
        help="Logical start time, epoch millis or ISO-8601 (default: now)"
    )
    convert_parser.add_argument(
        "--max-split-size",
        type=int,
        default=128 * 1024 * 1024,
        help="Maximum bytes per split"
    )
    convert_parser.add_argument(
        "--combine-small-files",
        action="store_true",
        help="Pack small files into combined splits"
    )
    convert_parser.add_argument(
        "--spark",
        action="store_true",
        help="Run on a local Spark session instead of in-process"
    )
    convert_parser.add_argument(
        "--summary-json",
        action="store_true",
        help="Also print the result summary as JSON"
    )

    # Validate command
    validate_parser = subparsers.add_parser("validate", help="Validate sink configurations")
    validate_parser.add_argument(
        "--config",
        required=True,
        help="Sink YAML configuration"
    )
    validate_parser.add_argument(
        "--schema",
        help="YAML file with schemas referenced by schema_ref"
    )

    # Formats command
    subparsers.add_parser("formats", help="List registered formats")

    # Parse arguments
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    # Execute command
    if args.command == "convert":
        convert_command(args)
    elif args.command == "validate":
        validate_command(args)
    elif args.command == "formats":
        formats_command(args)


if __name__ == "__main__":
    main()
