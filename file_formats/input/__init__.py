"""
Read side: split planning, line delegates and path-tracking record readers.
"""

from .input_format import PathTrackingInputFormat, TaskContext, check_path_field
from .line_reader import LineRecordReader
from .path_tracking_reader import CombinedRecordReader, PathTrackingRecordReader
from .splits import DEFAULT_MAX_SPLIT_SIZE, list_input_files, plan_splits, split_file

__all__ = [
    "PathTrackingInputFormat",
    "TaskContext",
    "check_path_field",
    "LineRecordReader",
    "CombinedRecordReader",
    "PathTrackingRecordReader",
    "DEFAULT_MAX_SPLIT_SIZE",
    "list_input_files",
    "plan_splits",
    "split_file",
]
