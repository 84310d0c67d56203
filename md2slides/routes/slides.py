from fastapi import APIRouter, HTTPException
from fastapi.responses import Response
from pygments.util import ClassNotFound

from md2slides.services.slides import SlideService

router = APIRouter(prefix="/api/slides", tags=["slides"])


@router.get("/highlight.css")
async def highlight_css(style: str | None = None) -> Response:
    """Pygments classes for the code blocks in rendered slides."""
    try:
        css = SlideService.stylesheet(style)
    except ClassNotFound:
        raise HTTPException(status_code=404, detail=f"Unknown style: {style}")
    return Response(css, media_type="text/css")
