"""
Output directory resolution from a base path, a time suffix pattern and the
run's logical start time.

Suffix patterns use SimpleDateFormat letters (yyyy-MM-dd-HH-mm), the syntax
pipeline configs have always used, or strftime directives when the pattern
contains '%'. Formatting is done in UTC from the supplied logical time only,
so replaying a run with the same logical time yields the same directory.
"""

from datetime import datetime, timedelta, timezone

from file_formats.core.errors import ConfigError

# Hadoop FileOutputFormat.OUTDIR
OUTPUT_DIR_KEY = "mapreduce.output.fileoutputformat.outputdir"

SUPPORTED_LETTERS = "yMdHmsS"

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)


def to_utc_datetime(logical_start_time: int | float | datetime) -> datetime:
    """
    Normalize a logical start time to an aware UTC datetime.

    Integers are epoch milliseconds; naive datetimes are taken as UTC.
    """
    if isinstance(logical_start_time, datetime):
        if logical_start_time.tzinfo is None:
            return logical_start_time.replace(tzinfo=timezone.utc)
        return logical_start_time.astimezone(timezone.utc)
    if isinstance(logical_start_time, bool) or not isinstance(logical_start_time, (int, float)):
        raise ConfigError(
            f"Logical start time must be epoch milliseconds or a datetime, got {logical_start_time!r}"
        )
    return EPOCH + timedelta(milliseconds=logical_start_time)


def parse_suffix_pattern(pattern: str) -> list[tuple[str, str]]:
    """
    Tokenize a suffix pattern.

    Returns:
        List of (kind, text) tokens where kind is "literal", "field" or "strftime"

    Raises:
        ConfigError: If the pattern uses unsupported letters or has an
            unterminated quote
    """
    if "%" in pattern:
        return [("strftime", pattern)]

    tokens: list[tuple[str, str]] = []
    i = 0
    while i < len(pattern):
        char = pattern[i]

        if char == "'":
            # '' is an escaped quote, 'text' is a quoted literal
            if pattern.startswith("''", i):
                tokens.append(("literal", "'"))
                i += 2
                continue
            end = pattern.find("'", i + 1)
            if end == -1:
                raise ConfigError(f"Unterminated quote in suffix pattern '{pattern}'", "suffix")
            tokens.append(("literal", pattern[i + 1:end]))
            i = end + 1
            continue

        if char.isalpha():
            if char not in SUPPORTED_LETTERS:
                raise ConfigError(
                    f"Unsupported pattern letter '{char}' in suffix '{pattern}'. "
                    f"Supported: {', '.join(SUPPORTED_LETTERS)}",
                    "suffix",
                )
            j = i
            while j < len(pattern) and pattern[j] == char:
                j += 1
            tokens.append(("field", pattern[i:j]))
            i = j
            continue

        tokens.append(("literal", char))
        i += 1

    return tokens


def _format_field(token: str, dt: datetime) -> str:
    letter, width = token[0], len(token)
    if letter == "y":
        return f"{dt.year % 100:02d}" if width == 2 else f"{dt.year:0{width}d}"
    if letter == "M":
        if width >= 4:
            return MONTH_NAMES[dt.month - 1]
        if width == 3:
            return MONTH_NAMES[dt.month - 1][:3]
        return f"{dt.month:0{width}d}"
    if letter == "d":
        return f"{dt.day:0{width}d}"
    if letter == "H":
        return f"{dt.hour:0{width}d}"
    if letter == "m":
        return f"{dt.minute:0{width}d}"
    if letter == "s":
        return f"{dt.second:0{width}d}"
    # S: milliseconds
    return f"{dt.microsecond // 1000:0{width}d}"


def format_time_suffix(pattern: str, logical_start_time: int | float | datetime) -> str:
    """Format the logical start time with a suffix pattern."""
    dt = to_utc_datetime(logical_start_time)
    parts = []
    for kind, text in parse_suffix_pattern(pattern):
        if kind == "strftime":
            parts.append(dt.strftime(text))
        elif kind == "field":
            parts.append(_format_field(text, dt))
        else:
            parts.append(text)
    return "".join(parts)


def resolve_output_dir(
    base_path: str,
    suffix_pattern: str | None,
    logical_start_time: int | float | datetime,
) -> str:
    """
    Resolve the physical output directory of a run.

    An empty or missing pattern yields base_path unchanged. Otherwise the
    formatted suffix is joined with exactly one '/'.

    Examples:
        >>> resolve_output_dir("gs://bucket/out", "", 0)
        'gs://bucket/out'
        >>> resolve_output_dir("gs://bucket/out/", "yyyy-MM-dd", 0)
        'gs://bucket/out/1970-01-01'
    """
    if not suffix_pattern:
        return base_path
    suffix = format_time_suffix(suffix_pattern, logical_start_time)
    return f"{base_path.rstrip('/')}/{suffix}"
