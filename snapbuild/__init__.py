# Grid-free snap building: candidate discovery, placement resolution and build sessions.
from snapbuild.config import BuildSettings
from snapbuild.session import BuildSession, InputEvent, PlacementEvent, RemovalEvent

__all__ = ["BuildSettings", "BuildSession", "InputEvent", "PlacementEvent", "RemovalEvent"]
