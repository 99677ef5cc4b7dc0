"""
Aurora mesh background.

The mesh is a soft backdrop of five blurred color blobs. Which palette color
lands on which blob is a seeded shuffle, so the user can cycle through
variations ("randomize") while every seed stays reproducible.
"""
from dataclasses import dataclass
import math
from typing import List, Sequence

from domain.models import BackgroundType, LayoutSettings

MESH_SLOTS = 5

# Used when the palette is too small to make an interesting mesh
MESH_FALLBACK: List[str] = ["#eef2ff", "#f0fdf4", "#fff1f2", "#fafaf9", "#f5f3ff"]
MIN_MESH_COLORS = 3

# Opacity of the flat wash painted with the first shuffled color
BASE_WASH_OPACITY = 0.3
BLOB_LAYER_OPACITY = 0.7


class SeededRandom:
    """
    Deterministic generator: frac(sin(state) * 10000), state += 1 per draw.

    Only as random as the preview needs; the point is that the same seed
    always yields the same sequence.
    """

    def __init__(self, seed: int) -> None:
        self.state = seed

    def random(self) -> float:
        x = math.sin(self.state) * 10000
        self.state += 1
        return x - math.floor(x)


def shuffle_mesh(palette: Sequence[str], seed: int) -> List[str]:
    """
    Return a seeded permutation of the mesh colors.

    Palettes with fewer than MIN_MESH_COLORS entries are replaced by
    MESH_FALLBACK; others are padded to MESH_SLOTS by repeating the first
    color. The input is never modified.
    """
    colors = list(palette) if len(palette) >= MIN_MESH_COLORS else list(MESH_FALLBACK)
    while len(colors) < MESH_SLOTS:
        colors.append(colors[0])

    rng = SeededRandom(seed)
    current = len(colors)
    while current != 0:
        pick = math.floor(rng.random() * current)
        current -= 1
        colors[current], colors[pick] = colors[pick], colors[current]
    return colors


@dataclass(frozen=True)
class MeshBlob:
    """An ellipse placed in fractions of the canvas (may extend past the edges)."""
    left: float
    top: float
    width: float
    height: float
    color: str


# (left, top, size) per blob, as fractions of the canvas
_BLOB_PLACEMENTS = [
    (-0.10, -0.10, 0.70),
    (0.40, 0.40, 0.70),  # anchored bottom/right at -10%
    (0.60, 0.20, 0.60),  # anchored right at -20%
    (0.20, 0.60, 0.60),  # anchored bottom at -20%
    (0.40, 0.40, 0.40),
]


def mesh_blobs(shuffled: Sequence[str]) -> List[MeshBlob]:
    """Place the first MESH_SLOTS shuffled colors onto the blob layout."""
    return [
        MeshBlob(left=left, top=top, width=size, height=size, color=color)
        for (left, top, size), color in zip(_BLOB_PLACEMENTS, shuffled[:MESH_SLOTS])
    ]


def randomize_mesh(settings: LayoutSettings) -> LayoutSettings:
    """Switch to the mesh background and advance its seed by one."""
    return settings.updated(
        background_type=BackgroundType.MESH,
        mesh_seed=settings.mesh_seed + 1,
    )
