"""
File storage abstraction.

Provides a simple interface for storing and retrieving exported files.
Currently uses local filesystem, can be extended to S3 or other backends.
"""
import time
from pathlib import Path
from typing import Optional

from PIL import Image


class FileStorage:
    """
    Local file storage implementation.

    Files are organized as:
    - media/exports/  - Rendered compositions (snapwrap-<epoch ms>.png)
    """

    def __init__(self, media_root: str = "media"):
        self.media_root = Path(media_root)
        self.media_root.mkdir(parents=True, exist_ok=True)

    def get_exports_dir(self) -> Path:
        """Get the exports directory."""
        path = self.media_root / "exports"
        path.mkdir(parents=True, exist_ok=True)
        return path

    def export_filename(self, timestamp_ms: Optional[int] = None) -> str:
        if timestamp_ms is None:
            timestamp_ms = int(time.time() * 1000)
        return f"snapwrap-{timestamp_ms}.png"

    def save_export(self, image: Image.Image, timestamp_ms: Optional[int] = None) -> str:
        """
        Save a rendered composition as PNG.

        Two exports in the same millisecond share a name; the later one wins.

        Returns:
            Relative path to the saved file
        """
        file_path = self.get_exports_dir() / self.export_filename(timestamp_ms)
        image.save(file_path, format="PNG")
        return str(file_path.relative_to(self.media_root))

    def get_absolute_path(self, relative_path: str) -> Path:
        """Convert a relative path to absolute."""
        return self.media_root / relative_path
