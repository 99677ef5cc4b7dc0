"""
FastAPI application entry point.

Run with: uvicorn api.main:app --reload
"""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from backend/.env (optional) before other imports that read env
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(env_path)

from api.routes import export, layout, palette
from services.image_decode import register_heif_opener
from settings import settings

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Register HEIF/HEIC opener at startup (for iPhone photos)
heif_available = register_heif_opener()

# Create app
app = FastAPI(
    title="SnapWrap API",
    description="Palette extraction, layout and export for wrapped image compositions",
    version="0.1.0",
)

# CORS middleware for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure properly for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Mount static files for exported compositions
if settings.SERVE_EXPORTS:
    media_path = Path(settings.MEDIA_ROOT)
    media_path.mkdir(parents=True, exist_ok=True)
    app.mount("/media", StaticFiles(directory=str(media_path)), name="media")

# Include routers
app.include_router(layout.router, tags=["layout"])
app.include_router(palette.router, tags=["palette"])
app.include_router(export.router, tags=["export"])


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "SnapWrap API", "heif": heif_available}


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}
