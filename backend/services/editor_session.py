"""
Editor session: the single owner of the editor's state.

Holds the current settings, the decoded image and its palette. Every change
replaces a value wholesale (settings, palette, drag state), so anything that
read the previous value keeps a consistent snapshot.
"""
from __future__ import annotations

import logging
from typing import Any, List, Optional

from domain.models import (
    DEFAULT_SETTINGS,
    BackgroundType,
    ComputedLayout,
    LayoutSettings,
    Palette,
    ShadowDescriptor,
    Size,
)
from services import drag
from services.export_renderer import DEFAULT_PIXEL_RATIO, LayoutNotReadyError, export_composition
from services.image_decode import DecodedImage, ImageDecodeError, decode_image
from services.layout_engine import compute_layout
from services.mesh import randomize_mesh, shuffle_mesh
from services.palette import derive_palette
from services.shadow import shadow_descriptor
from services.style_suggestions import StyleSuggestionClient, apply_style_suggestion
from services.viewport import compute_viewport_scale
from storage.file_storage import FileStorage

logger = logging.getLogger(__name__)

# Accent used by the UI while no image is loaded
NO_IMAGE_ACCENT = "rgba(0, 0, 0, 0.5)"


class EditorSession:
    def __init__(self, settings: LayoutSettings = DEFAULT_SETTINGS) -> None:
        self.settings = settings
        self.source: Optional[DecodedImage] = None
        self.source_bytes: Optional[bytes] = None
        self.source_mime: str = "image/png"
        self.palette = Palette()
        self.is_processing = False
        self.drag_state = drag.IDLE

    # --- image lifecycle ---

    @property
    def has_image(self) -> bool:
        return self.source is not None

    @property
    def natural_size(self) -> Size:
        return self.source.natural_size if self.source else Size()

    def load_image(
        self,
        file_bytes: bytes,
        filename: Optional[str] = None,
        content_type: Optional[str] = None,
    ) -> Palette:
        """
        Decode a new source image, rebuild the palette and recentre it.

        On decode failure the previous image is dropped, the palette resets
        to the empty fallback and the error propagates.
        """
        try:
            decoded = decode_image(file_bytes, filename, content_type)
        except ImageDecodeError:
            self.clear_image()
            raise

        self.source = decoded
        self.source_bytes = file_bytes
        self.source_mime = content_type or "image/png"
        self.palette = derive_palette(decoded.image)
        self.settings = self.settings.updated(pan_x=0, pan_y=0, scale=100)
        self.drag_state = drag.IDLE
        logger.info(
            "loaded %s (%dx%d), dominant=%s",
            filename or "<upload>",
            decoded.natural_size.width,
            decoded.natural_size.height,
            self.palette.dominant,
        )
        return self.palette

    def clear_image(self) -> None:
        self.source = None
        self.source_bytes = None
        self.palette = Palette()
        self.drag_state = drag.IDLE

    @property
    def accent_color(self) -> str:
        return self.palette.dominant if self.has_image else NO_IMAGE_ACCENT

    # --- settings ---

    def update_settings(self, **changes: Any) -> LayoutSettings:
        self.settings = self.settings.updated(**changes)
        return self.settings

    def reset(self) -> LayoutSettings:
        """Back to defaults; this is the only thing that resets the mesh seed."""
        self.settings = DEFAULT_SETTINGS
        return self.settings

    def apply_borderless_preset(self) -> LayoutSettings:
        self.settings = DEFAULT_SETTINGS.updated(inset=0)
        return self.settings

    def apply_transparent_preset(self) -> LayoutSettings:
        self.settings = DEFAULT_SETTINGS.updated(background="transparent", background_type=BackgroundType.PRESET)
        return self.settings

    def select_aspect_ratio(self, aspect_ratio: str) -> LayoutSettings:
        self.settings = self.settings.updated(aspect_ratio=aspect_ratio, scale=100, pan_x=0, pan_y=0)
        return self.settings

    def randomize_mesh(self) -> LayoutSettings:
        self.settings = randomize_mesh(self.settings)
        return self.settings

    def suggest_style(self, client: StyleSuggestionClient) -> bool:
        """
        Ask the remote service for a style and adopt it.

        Returns True when settings changed. `is_processing` is cleared on
        every exit path.
        """
        if not self.has_image or not self.source_bytes:
            return False
        self.is_processing = True
        try:
            suggestion = client.suggest(self.source_bytes, self.source_mime)
            if suggestion is None:
                return False
            self.settings = apply_style_suggestion(self.settings, suggestion)
            return True
        finally:
            self.is_processing = False

    # --- pan drag ---

    def pointer_down(self, x: float, y: float) -> None:
        self.drag_state = drag.pointer_down(self.drag_state, x, y, self.settings, self.has_image)

    def pointer_move(self, x: float, y: float) -> None:
        self.drag_state, self.settings = drag.pointer_move(self.drag_state, x, y, self.settings)

    def pointer_up(self) -> None:
        self.drag_state = drag.pointer_up(self.drag_state)

    # --- derived values ---

    @property
    def layout(self) -> ComputedLayout:
        return compute_layout(self.settings, self.natural_size)

    def viewport_scale(self, container: Size) -> float:
        return compute_viewport_scale(container, self.layout)

    @property
    def shadow(self) -> ShadowDescriptor:
        return shadow_descriptor(self.settings.shadow, self.settings.shadow_angle)

    @property
    def mesh_colors(self) -> List[str]:
        return shuffle_mesh(self.palette.colors, self.settings.mesh_seed)

    def export(self, storage: FileStorage, pixel_ratio: float = DEFAULT_PIXEL_RATIO) -> str:
        """
        Render the current composition to a PNG in `storage`.

        Raises:
            LayoutNotReadyError: if no image is loaded
            ExportError: if rendering or writing fails
        """
        if self.source is None:
            raise LayoutNotReadyError("No image loaded")
        return export_composition(self.source.image, self.settings, self.palette, storage, pixel_ratio)
