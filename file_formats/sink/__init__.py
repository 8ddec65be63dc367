"""
Sink orchestration: the FileSink state machine and its host contexts.
"""

from .context import (
    BatchSinkContext,
    Emitter,
    FileSinkProperties,
    ListEmitter,
    PipelineConfigurer,
    PluginConfig,
    RuntimeContext,
    SinkConfig,
)
from .file_sink import FileSink, SinkState

__all__ = [
    "BatchSinkContext",
    "Emitter",
    "FileSinkProperties",
    "ListEmitter",
    "PipelineConfigurer",
    "PluginConfig",
    "RuntimeContext",
    "SinkConfig",
    "FileSink",
    "SinkState",
]
