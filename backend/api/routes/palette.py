"""
Palette and mesh API routes.
"""
from typing import List

from fastapi import APIRouter, File, UploadFile
from pydantic import BaseModel

from services.mesh import mesh_blobs, shuffle_mesh
from services.palette import derive_palette_from_bytes

router = APIRouter()


class PaletteResponse(BaseModel):
    dominant: str
    palette: List[str]


class MeshRequest(BaseModel):
    palette: List[str] = []
    seed: int = 1


class MeshBlobResponse(BaseModel):
    left: float
    top: float
    width: float
    height: float
    color: str


class MeshResponse(BaseModel):
    colors: List[str]
    blobs: List[MeshBlobResponse]


@router.post("/palette", response_model=PaletteResponse)
async def extract_palette(file: UploadFile = File(...)):
    """
    Extract the Morandi palette of an uploaded image.

    Undecodable uploads get the fallback palette rather than an error.
    """
    file_content = await file.read()
    palette = derive_palette_from_bytes(file_content, file.filename, file.content_type)
    return PaletteResponse(dominant=palette.dominant, palette=list(palette.colors))


@router.post("/mesh", response_model=MeshResponse)
async def shuffle_mesh_colors(request: MeshRequest):
    """Seeded color arrangement for the Aurora background."""
    colors = shuffle_mesh(request.palette, request.seed)
    blobs = [
        MeshBlobResponse(left=b.left, top=b.top, width=b.width, height=b.height, color=b.color)
        for b in mesh_blobs(colors)
    ]
    return MeshResponse(colors=colors, blobs=blobs)
