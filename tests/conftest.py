"""
Pytest configuration and fixtures for file-format-adapters tests

This module provides shared fixtures for unit, integration, and E2E tests.
"""
import os
from pathlib import Path
from typing import Callable, Generator

import pytest

from file_formats.core.models import Field, FieldType, FileSplit, Schema


# =======================
# PYTEST CONFIGURATION
# =======================

def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "unit: Unit tests that don't require external services"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests that run a local Spark session"
    )
    config.addinivalue_line(
        "markers", "e2e: End-to-end tests that test the full pipeline"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that take more than 5 seconds to run"
    )


# =======================
# SPARK FIXTURES
# =======================

@pytest.fixture(scope="session")
def spark_session() -> Generator:
    """
    Create a Spark session for testing with local mode

    Skips the requesting test when no JVM is available.

    Yields:
        SparkSession configured for local testing
    """
    from pyspark.sql import SparkSession

    try:
        spark = (
            SparkSession.builder
            .appName("file-formats-test")
            .master("local[2]")
            .config("spark.sql.shuffle.partitions", "2")
            .config("spark.driver.memory", "1g")
            .config("spark.ui.enabled", "false")  # Disable UI for tests
            .getOrCreate()
        )
    except Exception as e:
        pytest.skip(f"Spark is not available: {e}")

    # Set log level to WARN to reduce test output noise
    spark.sparkContext.setLogLevel("WARN")

    yield spark

    # Cleanup
    spark.stop()


# =======================
# SCHEMA FIXTURES
# =======================

@pytest.fixture
def flat_schema() -> Schema:
    """Primitive-only schema usable by every format"""
    return Schema(
        name="event",
        fields=(
            Field(name="id", type=FieldType.LONG),
            Field(name="name", type=FieldType.STRING),
            Field(name="score", type=FieldType.DOUBLE, nullable=True),
            Field(name="active", type=FieldType.BOOLEAN),
        ),
    )


@pytest.fixture
def tracked_schema(flat_schema) -> Schema:
    """flat_schema plus a nullable string field receiving the source path"""
    return Schema(
        name="event",
        fields=flat_schema.fields + (Field(name="source_file", type=FieldType.STRING, nullable=True),),
    )


@pytest.fixture
def nested_schema() -> Schema:
    """Schema with a nested record, an array and bytes"""
    location = Schema(
        name="location",
        fields=(
            Field(name="lat", type=FieldType.DOUBLE),
            Field(name="lon", type=FieldType.DOUBLE),
            Field(name="label", type=FieldType.STRING, nullable=True),
        ),
    )
    return Schema(
        name="reading",
        fields=(
            Field(name="sensor_id", type=FieldType.INT),
            Field(name="payload", type=FieldType.BYTES),
            Field(name="tags", type=FieldType.ARRAY, item_type=FieldType.STRING, nullable=True),
            Field(name="location", type=FieldType.RECORD, record_schema=location, nullable=True),
            Field(name="ratio", type=FieldType.FLOAT, nullable=True),
        ),
    )


# =======================
# FILE FIXTURES
# =======================

@pytest.fixture(scope="session")
def test_data_dir() -> str:
    """
    Get path to test data fixtures directory

    Returns:
        Path to tests/fixtures directory
    """
    return os.path.join(os.path.dirname(__file__), "fixtures")


@pytest.fixture
def write_file(tmp_path) -> Callable[..., str]:
    """
    Write text lines into a file under tmp_path

    Returns:
        Function (name, lines) -> path of the written file
    """
    def _write(name: str, lines: list[str], newline: str = "\n") -> str:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes("".join(line + newline for line in lines).encode("utf-8"))
        return str(path)

    return _write


@pytest.fixture
def whole_file_split() -> Callable[[str], FileSplit]:
    """Build a split covering a whole file"""
    def _split(path: str) -> FileSplit:
        size = Path(path).stat().st_size
        return FileSplit(path=path, start=0, length=size, file_length=size)

    return _split
