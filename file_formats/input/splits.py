"""
Split planning for local input files.

Files are cut into byte ranges of at most max_split_size (with Hadoop's 10%
slop so no tiny tail split is produced). Readers align ranges to line
boundaries, so any cut point is valid. Small whole files can be packed into
combined splits to cut task overhead.
"""

import os
from pathlib import Path
from typing import Iterable, List, Union

from file_formats.core.errors import ConfigError
from file_formats.core.models import CombinedFileSplit, FileSplit
from file_formats.input.line_reader import GZIP_SUFFIX
from file_formats.observability.logger import get_logger

logger = get_logger(__name__)

DEFAULT_MAX_SPLIT_SIZE = 128 * 1024 * 1024
SPLIT_SLOP = 1.1

Split = Union[FileSplit, CombinedFileSplit]


def list_input_files(paths: Iterable[str]) -> List[str]:
    """
    Expand input paths into a sorted list of files.

    Directories are listed one level deep; hidden files and files starting
    with '_' (e.g. _SUCCESS markers) are ignored.

    Raises:
        ConfigError: If a path does not exist
    """
    files: List[str] = []
    for raw_path in paths:
        path = Path(raw_path)
        if path.is_dir():
            for child in sorted(path.iterdir()):
                if child.is_file() and not child.name.startswith((".", "_")):
                    files.append(str(child))
        elif path.is_file():
            files.append(str(path))
        else:
            raise ConfigError(f"Input path does not exist: {raw_path}", "input")
    return files


def split_file(path: str, max_split_size: int = DEFAULT_MAX_SPLIT_SIZE) -> List[FileSplit]:
    """Cut one file into byte-range splits."""
    size = os.path.getsize(path)
    if size <= max_split_size or path.endswith(GZIP_SUFFIX):
        return [FileSplit(path=path, start=0, length=size, file_length=size)]

    splits = []
    start = 0
    remaining = size
    while remaining / max_split_size > SPLIT_SLOP:
        splits.append(FileSplit(path=path, start=start, length=max_split_size, file_length=size))
        start += max_split_size
        remaining -= max_split_size
    if remaining > 0:
        splits.append(FileSplit(path=path, start=start, length=remaining, file_length=size))
    return splits


def plan_splits(
    paths: Iterable[str],
    max_split_size: int = DEFAULT_MAX_SPLIT_SIZE,
    combine_small_files: bool = False,
) -> List[Split]:
    """
    Plan the splits of a set of input paths.

    Args:
        paths: Files or directories to read
        max_split_size: Upper bound of bytes per split
        combine_small_files: Pack whole files smaller than max_split_size
            into CombinedFileSplits of up to max_split_size bytes

    Returns:
        Splits in file order
    """
    if max_split_size <= 0:
        raise ConfigError("max_split_size must be positive", "max_split_size")

    file_splits: List[FileSplit] = []
    for path in list_input_files(paths):
        file_splits.extend(split_file(path, max_split_size))

    if not combine_small_files:
        logger.info(f"Planned {len(file_splits)} splits")
        return list(file_splits)

    planned: List[Split] = []
    pending: List[FileSplit] = []
    pending_size = 0

    def flush() -> None:
        nonlocal pending, pending_size
        if len(pending) == 1:
            planned.append(pending[0])
        elif pending:
            planned.append(CombinedFileSplit(splits=tuple(pending)))
        pending = []
        pending_size = 0

    for split in file_splits:
        whole_file = split.starts_file and split.length == split.file_length
        if not whole_file or split.length >= max_split_size:
            flush()
            planned.append(split)
            continue
        if pending and pending_size + split.length > max_split_size:
            flush()
        pending.append(split)
        pending_size += split.length
    flush()

    logger.info(f"Planned {len(planned)} splits from {len(file_splits)} file ranges")
    return planned
