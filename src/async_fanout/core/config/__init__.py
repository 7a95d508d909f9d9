"""Fan-out configuration loading."""

from async_fanout.core.config.fanout_config import FanOutConfig, FanOutLoader

__all__ = ["FanOutConfig", "FanOutLoader"]
