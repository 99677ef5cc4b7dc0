"""
Drag-to-reposition for the card.

An explicit two-state machine (idle -> dragging -> idle). Transitions are
pure: they take the current state and settings and return new values.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Tuple

from domain.models import LayoutSettings


class DragPhase(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"


@dataclass(frozen=True)
class DragState:
    phase: DragPhase = DragPhase.IDLE
    # Pointer position and pan offsets captured at pointer-down
    start_x: float = 0.0
    start_y: float = 0.0
    start_pan_x: float = 0.0
    start_pan_y: float = 0.0

    @property
    def is_dragging(self) -> bool:
        return self.phase == DragPhase.DRAGGING


IDLE = DragState()


def pointer_down(
    state: DragState,
    x: float,
    y: float,
    settings: LayoutSettings,
    has_image: bool = True,
) -> DragState:
    """Start dragging from (x, y). Without an image there is nothing to move."""
    if not has_image:
        return state
    return DragState(
        phase=DragPhase.DRAGGING,
        start_x=x,
        start_y=y,
        start_pan_x=settings.pan_x,
        start_pan_y=settings.pan_y,
    )


def pointer_move(
    state: DragState,
    x: float,
    y: float,
    settings: LayoutSettings,
) -> Tuple[DragState, LayoutSettings]:
    """Pan by the pointer delta since pointer-down; a no-op while idle."""
    if not state.is_dragging:
        return state, settings
    return state, settings.updated(
        pan_x=state.start_pan_x + (x - state.start_x),
        pan_y=state.start_pan_y + (y - state.start_y),
    )


def pointer_up(state: DragState) -> DragState:
    """Finish the drag. Also used when the pointer leaves the canvas."""
    return IDLE
