import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from md2slides.clients import GistClient, GistError
from md2slides.config import settings
from md2slides.database import init_db
from md2slides.routes import gists, slides
from md2slides.services.gists import GistGateway

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the draft table and the shared Gist client; close it on shutdown."""
    await init_db()
    client = GistClient()
    if not client.configured:
        logger.warning(
            "GITHUB_TOKEN not set - gist save/load/delete will answer 500, list stays empty"
        )
    app.state.gateway = GistGateway(client)
    try:
        yield
    finally:
        await client.aclose()


app = FastAPI(
    title="md2slides",
    description="Markdown slide decks with GitHub Gist sharing",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(gists.router)
app.include_router(slides.router)


@app.exception_handler(GistError)
async def gist_error_handler(_request: Request, exc: GistError) -> JSONResponse:
    """Render gateway failures as ``{"error": ...}`` with the matching status."""
    return JSONResponse({"error": exc.message}, status_code=exc.status_code)


def run() -> None:
    uvicorn.run(
        "md2slides.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
