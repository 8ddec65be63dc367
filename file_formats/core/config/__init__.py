"""
Sink configuration loading and building.
"""

from .loader import SinkConfigBuilder, SinkConfigLoader

__all__ = ["SinkConfigBuilder", "SinkConfigLoader"]
