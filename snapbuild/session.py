"""
Build session orchestrator.

Ties the pieces together for one player in build mode:
    input events -> interaction layer -> ray cast -> resolver -> preview piece
and turns a valid preview into a committed piece (or removes one under the
cursor). Handles reporting through a rich console and a plain log.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable

from rich.console import Console
from rich.markup import escape

from snapbuild.config import BuildSettings
from snapbuild.errors import PieceInstantiationError, PieceLookupError
from snapbuild.tools.interaction import rotate_or_cycle
from snapbuild.tools.pieces import Piece
from snapbuild.tools.placement_resolver import Placement, PlacementResolver, ResolutionState
from snapbuild.tools.prefab_lookup import CatalogEntry, PieceCatalog, default_catalog
from snapbuild.tools.registry import PieceRegistry
from snapbuild.tools.vector_math import Vec3
from snapbuild.tools.world import CollisionQuery, SimpleWorld, WorldQuery


console = Console()


class InputEvent(str, Enum):
    """Discrete inputs the session understands. Key bindings live elsewhere."""
    ROTATE_LEFT = "rotate_left"
    ROTATE_RIGHT = "rotate_right"
    PLACE = "place"
    REMOVE = "remove"
    CANCEL = "cancel"


@dataclass(frozen=True)
class PlacementEvent:
    """Emitted after a piece is committed."""
    piece: Piece
    snapped: bool


@dataclass(frozen=True)
class RemovalEvent:
    """Emitted after a piece is retracted and destroyed."""
    piece: Piece


class BuildSession:
    """
    One player's build mode.

    The session owns the registry, the preview piece and the resolver. All
    per-frame conditions (unknown piece, factory failure, no hit, invalid
    placement, nothing to remove) are handled here and never raised.
    """

    def __init__(
        self,
        catalog: PieceCatalog | None = None,
        registry: PieceRegistry | None = None,
        world: WorldQuery | None = None,
        settings: BuildSettings | None = None,
        collision: CollisionQuery | None = None,
        verbose: bool = False,
    ):
        self.catalog = catalog or default_catalog()
        self.registry = registry if registry is not None else PieceRegistry()
        self.world = world or SimpleWorld(self.registry)
        self.settings = settings or BuildSettings()
        self.resolver = PlacementResolver(self.registry, self.settings, collision)
        self.verbose = verbose

        self.build_mode = False
        self.active_id: str | None = None
        self.preview: Piece | None = None
        self.last_ray: tuple[Vec3, Vec3] | None = None

        self.placed_listeners: list[Callable[[PlacementEvent], None]] = []
        self.removed_listeners: list[Callable[[RemovalEvent], None]] = []
        self.log_lines: list[str] = []

    @property
    def state(self) -> ResolutionState:
        return self.resolver.state

    # ========================================================================
    # Reporting
    # ========================================================================

    def _log(self, message: str) -> None:
        self.log_lines.append(message)
        if self.verbose:
            console.print(f"[dim]{escape(message)}[/dim]")

    def _error(self, message: str) -> None:
        self.log_lines.append(f"ERROR: {message}")
        console.print(f"[red]{escape(message)}[/red]")

    # ========================================================================
    # Build Mode and Selection
    # ========================================================================

    def enter_build_mode(self) -> None:
        if not self.build_mode:
            self.build_mode = True
            self._log("Entered build mode")

    def exit_build_mode(self) -> None:
        """Leave build mode, tearing down the preview and resolution state now."""
        self._drop_preview()
        self.active_id = None
        if self.build_mode:
            self.build_mode = False
            self._log("Exited build mode")

    def _drop_preview(self) -> None:
        if self.preview is not None:
            self.preview.destroy()
            self.preview = None
        self.resolver.reset()

    def _create(self, entry: CatalogEntry) -> Piece:
        piece = entry.create()
        if piece.committed:
            raise PieceInstantiationError(entry.metadata.name, "factory returned a committed piece")
        piece.set_preview(True)
        return piece

    def select_piece(self, piece_id: str) -> bool:
        """
        Make `piece_id` the active piece type and start a fresh preview.

        Returns False, leaving the current selection untouched, when the id is
        unknown or its factory fails.
        """
        try:
            entry = self.catalog.lookup(piece_id)
            preview = self._create(entry)
        except (PieceLookupError, PieceInstantiationError) as e:
            self._error(str(e))
            return False

        self.enter_build_mode()
        self._drop_preview()
        self.active_id = piece_id
        self.preview = preview
        self._log(f"Selected {piece_id} ({len(preview.get_connectors())} connectors)")
        return True

    def deselect(self) -> None:
        if self.active_id is not None:
            self._log(f"Deselected {self.active_id}")
        self._drop_preview()
        self.active_id = None

    # ========================================================================
    # Frame Update
    # ========================================================================

    def update(self, origin: Vec3, direction: Vec3) -> Placement | None:
        """
        One resolution pass for the camera ray (origin, direction).

        Returns the placement, or None when there is no preview or the ray
        hits nothing (the preview is hidden and flagged invalid).
        """
        self.last_ray = (origin, direction)
        if self.preview is None:
            return None

        hit = self.world.cast_ray(
            origin, direction, self.settings.ray_length, self.settings.placement_mask
        )
        placement = self.resolver.update(self.preview, hit)

        if placement is None:
            self.preview.visible = False
            self.preview.set_placement_feedback(False)
            return None

        self.preview.transform = placement.transform
        self.preview.visible = True
        self.preview.set_placement_feedback(placement.valid)
        if self.verbose:
            target = "free" if not placement.snapped else (
                f"snap {self.state.selected_index + 1}/{len(self.state.candidates)}"
            )
            console.print(
                f"[dim]{self.active_id} at {_fmt(placement.transform.origin)} "
                f"yaw={self.state.yaw:g} {target} valid={placement.valid}[/dim]"
            )
        return placement

    def frame(
        self,
        origin: Vec3,
        direction: Vec3,
        events: Iterable[InputEvent | str] = (),
    ) -> Placement | None:
        """Apply this frame's input events, then resolve."""
        for event in events:
            self.handle(event, origin, direction)
        return self.update(origin, direction)

    # ========================================================================
    # Input
    # ========================================================================

    def handle(
        self,
        event: InputEvent | str,
        origin: Vec3 | None = None,
        direction: Vec3 | None = None,
    ):
        """
        Dispatch one input event. Ignored outside build mode, and unknown
        event names are ignored everywhere.

        Rotation and cycling only change state; they show up on the next
        update(). Remove uses the given ray, or the last ray passed to update().
        """
        try:
            event = InputEvent(event)
        except ValueError:
            self._log(f"Ignored unknown input {event!r}")
            return None
        if not self.build_mode:
            return None

        if event in (InputEvent.ROTATE_LEFT, InputEvent.ROTATE_RIGHT):
            direction_sign = 1 if event is InputEvent.ROTATE_RIGHT else -1
            action = rotate_or_cycle(self.state, direction_sign, self.settings.rotation_step)
            if action == "cycle":
                self._log(f"Snap target {self.state.selected_index + 1}/{len(self.state.candidates)}")
            else:
                self._log(f"Yaw {self.state.yaw:g}")
            return action
        elif event is InputEvent.PLACE:
            return self.commit()
        elif event is InputEvent.REMOVE:
            if origin is None or direction is None:
                if self.last_ray is None:
                    return None
                origin, direction = self.last_ray
            return self.retract(origin, direction)
        elif event is InputEvent.CANCEL:
            if self.active_id is not None:
                self.deselect()
            else:
                self.exit_build_mode()
        return None

    # ========================================================================
    # Commit / Retract
    # ========================================================================

    def commit(self) -> Piece | None:
        """
        Place the current preview as a committed piece.

        Refused (returns None) unless the last resolution was valid. On success
        a fresh preview of the same type replaces the old one.
        """
        placement = self.state.placement
        if self.preview is None or placement is None or not placement.valid:
            return None

        entry = self.catalog.lookup(self.active_id)
        try:
            piece = self._create(entry)
            fresh_preview = self._create(entry)
        except PieceInstantiationError as e:
            self._error(str(e))
            return None

        piece.commit(placement.transform)
        self.registry.add(piece)

        self.preview.destroy()
        self.preview = fresh_preview
        self.resolver.reset()

        self._log(
            f"Placed {piece.type_id} at {_fmt(piece.transform.origin)}"
            + (" (snapped)" if placement.snapped else "")
        )
        event = PlacementEvent(piece, placement.snapped)
        for listener in self.placed_listeners:
            listener(event)
        return piece

    def retract(self, origin: Vec3, direction: Vec3) -> Piece | None:
        """Remove and destroy the committed piece under the ray, if any."""
        hit = self.world.cast_ray(
            origin, direction, self.settings.ray_length, self.settings.removal_mask
        )
        if hit is None:
            return None
        piece = self.registry.owner_of(hit.hit_entity)
        if piece is None:
            return None

        self.registry.remove(piece)
        piece.destroy()
        self.resolver.invalidate_placement()

        self._log(f"Removed {piece.type_id} at {_fmt(piece.transform.origin)}")
        event = RemovalEvent(piece)
        for listener in self.removed_listeners:
            listener(event)
        return piece


def _fmt(v: Vec3) -> str:
    return f"({v.x:.3f}, {v.y:.3f}, {v.z:.3f})"
