"""
Export and style-suggestion API routes.

Both take the image as a multipart upload plus the current settings as a
JSON form field.
"""
import json
import logging
from typing import Any, Dict

from fastapi import APIRouter, File, Form, HTTPException, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import FileResponse
from pydantic import BaseModel

from api.routes.layout import settings_from_payload
from services.editor_session import EditorSession
from services.export_renderer import ExportError, LayoutNotReadyError
from services.image_decode import ImageDecodeError
from services.style_suggestions import get_default_style_client
from settings import settings as app_settings
from storage.file_storage import FileStorage

logger = logging.getLogger(__name__)

router = APIRouter()
storage = FileStorage(app_settings.MEDIA_ROOT)


class StyleSuggestionResponse(BaseModel):
    applied: bool
    settings: Dict[str, Any]


def _parse_settings_field(raw: str) -> Dict[str, Any]:
    try:
        data = json.loads(raw or "{}")
    except json.JSONDecodeError:
        raise HTTPException(status_code=422, detail="settings must be a JSON object")
    if not isinstance(data, dict):
        raise HTTPException(status_code=422, detail="settings must be a JSON object")
    return data


async def _session_for_upload(file: UploadFile, raw_settings: str) -> EditorSession:
    """Build a one-shot session holding the upload and the client's settings."""
    requested = settings_from_payload(_parse_settings_field(raw_settings))
    session = EditorSession()
    file_content = await file.read()
    try:
        session.load_image(file_content, file.filename, file.content_type)
    except ImageDecodeError as e:
        raise HTTPException(status_code=400, detail=str(e))
    # load_image recentres; the client's own pan/zoom wins here
    session.settings = requested
    return session


@router.post("/export")
async def export_image(file: UploadFile = File(...), settings: str = Form("{}")):
    """Render the composition at the configured pixel ratio and return the PNG."""
    session = await _session_for_upload(file, settings)
    try:
        rel_path = session.export(storage, pixel_ratio=app_settings.EXPORT_PIXEL_RATIO)
    except LayoutNotReadyError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ExportError as e:
        raise HTTPException(status_code=500, detail=str(e))

    abs_path = storage.get_absolute_path(rel_path)
    return FileResponse(path=str(abs_path), media_type="image/png", filename=abs_path.name)


@router.post("/style-suggestion", response_model=StyleSuggestionResponse)
async def suggest_style(file: UploadFile = File(...), settings: str = Form("{}")):
    """
    Ask the style service for a background and shadow.

    A failed or unconfigured service is not an error: the settings come back
    unchanged with `applied=false`.
    """
    session = await _session_for_upload(file, settings)
    # The style client blocks on HTTP; keep it off the event loop
    applied = await run_in_threadpool(session.suggest_style, get_default_style_client())
    if not applied:
        logger.info("style suggestion not applied; returning settings unchanged")
    return StyleSuggestionResponse(applied=applied, settings=session.settings.to_dict())
