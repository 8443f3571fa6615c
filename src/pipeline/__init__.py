"""
Pipeline module: the video pump that repeats still-image detection over a
live source.
"""

from .pump import (
    VideoPump,
    PumpState,
    PumpStats,
    FrameScheduler,
    RefreshScheduler,
    create_pump_from_config,
)

__all__ = [
    "VideoPump",
    "PumpState",
    "PumpStats",
    "FrameScheduler",
    "RefreshScheduler",
    "create_pump_from_config",
]
