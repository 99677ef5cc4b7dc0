"""Render a wrapped composition for a local image file.

Usage:
    python -m scripts.render_composition path/to/photo.jpg [--aspect-ratio 1/1] [--padding 64] [--seed 3]

Run from the `backend/` directory. The PNG lands in <media-root>/exports/
as snapwrap-<epoch ms>.png; the palette and layout are logged.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from domain.models import BackgroundType, InvalidSettingsError
from services.editor_session import EditorSession
from services.export_renderer import ExportError
from services.image_decode import ImageDecodeError, register_heif_opener
from storage.file_storage import FileStorage

logger = logging.getLogger("render_composition")


def main() -> int:
    if not logger.handlers:
        logging.basicConfig(level=logging.INFO, format="%(message)s")
    parser = argparse.ArgumentParser(description="Wrap an image on a background and export it as PNG.")
    parser.add_argument("image", help="Source image (JPEG, PNG, HEIC with pillow-heif, ...).")
    parser.add_argument("--media-root", default=str(Path(__file__).resolve().parents[1] / "media"))
    parser.add_argument("--padding", type=float, default=None)
    parser.add_argument("--inset", type=float, default=None)
    parser.add_argument("--border-radius", type=float, default=None)
    parser.add_argument("--shadow", type=float, default=None)
    parser.add_argument("--shadow-angle", type=float, default=None)
    parser.add_argument("--scale", type=float, default=None, help="Image zoom percent (10-300).")
    parser.add_argument("--aspect-ratio", default=None, help='"auto" or "W/H".')
    parser.add_argument("--background", default=None, help="CSS color or linear-gradient(); disables the mesh.")
    parser.add_argument("--transparent", action="store_true", help="Transparent background.")
    parser.add_argument("--seed", type=int, default=None, help="Mesh seed.")
    parser.add_argument("--pixel-ratio", type=float, default=2.0)
    args = parser.parse_args()

    register_heif_opener()
    src = Path(args.image)
    try:
        file_bytes = src.read_bytes()
    except OSError as e:
        logger.error("cannot read %s: %s", src, e)
        return 2

    session = EditorSession()
    try:
        palette = session.load_image(file_bytes, filename=src.name)
    except ImageDecodeError as e:
        logger.error("%s", e)
        return 2

    changes = {
        "padding": args.padding,
        "inset": args.inset,
        "border_radius": args.border_radius,
        "shadow": args.shadow,
        "shadow_angle": args.shadow_angle,
        "scale": args.scale,
        "aspect_ratio": args.aspect_ratio,
        "mesh_seed": args.seed,
    }
    changes = {k: v for k, v in changes.items() if v is not None}
    if args.background:
        changes.update(background=args.background, background_type=BackgroundType.CUSTOM)
    if args.transparent:
        changes.update(background_type=BackgroundType.TRANSPARENT)
    try:
        session.update_settings(**changes)
    except InvalidSettingsError as e:
        logger.error("%s", e)
        return 2

    layout = session.layout
    logger.info("palette: dominant=%s colors=%s", palette.dominant, ", ".join(palette.colors))
    logger.info(
        "layout: export %.1fx%.1f card %.1fx%.1f",
        layout.export_width,
        layout.export_height,
        layout.card_width,
        layout.card_height,
    )

    storage = FileStorage(args.media_root)
    try:
        rel_path = session.export(storage, pixel_ratio=args.pixel_ratio)
    except ExportError as e:
        logger.error("%s", e)
        return 1
    print(storage.get_absolute_path(rel_path))
    return 0


if __name__ == "__main__":
    sys.exit(main())
