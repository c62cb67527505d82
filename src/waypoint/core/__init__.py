"""Core infrastructure: Checkpoint, Configuration, Clock, Events, Logging."""

from waypoint.core.checkpoint import (
    CheckpointStore,
    CheckpointValidator,
    RecoveryManager,
    StateReconstructor,
)
from waypoint.core.config import (
    CheckpointSettings,
    LoggingSettings,
    WaypointSettings,
    WorkspaceSettings,
    load_settings,
)
from waypoint.core.events import EventBus, EventBusProtocol, NullEventBus

__all__ = [
    "CheckpointSettings",
    "CheckpointStore",
    "CheckpointValidator",
    "EventBus",
    "EventBusProtocol",
    "LoggingSettings",
    "NullEventBus",
    "RecoveryManager",
    "StateReconstructor",
    "WaypointSettings",
    "WorkspaceSettings",
    "load_settings",
]
