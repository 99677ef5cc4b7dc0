import os

# Basic settings helper to read environment configuration.


def _as_bool(val: str | None, default: bool = False) -> bool:
    if val is None:
        return default
    return val.lower() in ("1", "true", "yes", "on")


class Settings:
    def __init__(self) -> None:
        self.MEDIA_ROOT: str = os.getenv("SNAPWRAP_MEDIA_ROOT", "media")
        self.EXPORT_PIXEL_RATIO: float = float(os.getenv("SNAPWRAP_EXPORT_PIXEL_RATIO", "2"))
        self.LOG_LEVEL: str = os.getenv("SNAPWRAP_LOG_LEVEL", "INFO").upper()
        self.SERVE_EXPORTS: bool = _as_bool(os.getenv("SNAPWRAP_SERVE_EXPORTS"), True)
        self.STYLE_SUGGEST_URL: str | None = os.getenv("STYLE_SUGGEST_URL")
        self.STYLE_SUGGEST_API_KEY: str | None = os.getenv("STYLE_SUGGEST_API_KEY")
        self.STYLE_SUGGEST_TIMEOUT: float = float(os.getenv("STYLE_SUGGEST_TIMEOUT", "20"))


settings = Settings()
