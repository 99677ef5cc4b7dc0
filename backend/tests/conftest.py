import sys
from io import BytesIO
from pathlib import Path

import pytest
from PIL import Image

# Ensure the backend package root is on sys.path for direct pytest runs
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))


@pytest.fixture
def make_png():
    """Factory for encoded PNG bytes of a solid color."""
    def _make(size=(40, 30), color=(200, 100, 50), mode="RGB") -> bytes:
        buf = BytesIO()
        Image.new(mode, size, color).save(buf, format="PNG")
        return buf.getvalue()
    return _make
