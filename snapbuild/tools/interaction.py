"""
Rotation and candidate cycling.

These are plain mutations of a ResolutionState; nothing is re-resolved here.
The next resolution pass picks the change up.
"""

from snapbuild.tools.placement_resolver import ResolutionState

ROTATION_STEP = 45.0


def normalize_angle(degrees: float) -> float:
    """Wrap an angle into [0, 360)."""
    wrapped = degrees % 360.0
    # Tiny negative inputs can round up to exactly 360.0.
    if wrapped >= 360.0:
        wrapped = 0.0
    return wrapped


def rotate(state: ResolutionState, direction: int, step: float = ROTATION_STEP) -> float:
    """Add `direction * step` degrees of yaw. Returns the new yaw."""
    state.yaw = normalize_angle(state.yaw + direction * step)
    return state.yaw


def cycle(state: ResolutionState, direction: int) -> int:
    """
    Move the selection through the candidate list with wraparound.

    No-op with one or zero candidates. Returns the selected index.
    """
    count = len(state.candidates)
    if count <= 1:
        return state.selected_index
    state.selected_index = (state.selected_index + direction) % count
    return state.selected_index


def rotate_or_cycle(state: ResolutionState, direction: int, step: float = ROTATION_STEP) -> str:
    """
    The overloaded rotate input.

    Cycles candidates while several snap targets are on offer, otherwise
    rotates. Returns "cycle" or "rotate" so callers can report what happened.
    """
    if len(state.candidates) > 1:
        cycle(state, direction)
        return "cycle"
    rotate(state, direction, step)
    return "rotate"
