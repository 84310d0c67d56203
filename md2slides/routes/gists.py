from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from md2slides.services.gists import GistGateway
from md2slides.services.ownership import OwnershipStore

router = APIRouter(prefix="/api/gist", tags=["gists"])


# ------------------------------------------------------------------
# Request bodies
# ------------------------------------------------------------------


class SaveRequest(BaseModel):
    title: str = ""
    content: str = ""
    gistId: str | None = None


# ------------------------------------------------------------------
# Dependencies
# ------------------------------------------------------------------


def get_gateway(request: Request) -> GistGateway:
    """The process-wide gateway created in the app lifespan."""
    return request.app.state.gateway


def _with_cookie(body: dict, header: str) -> JSONResponse:
    response = JSONResponse(body)
    response.headers.append("set-cookie", header)
    return response


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------


@router.post("/save")
async def save_gist(
    body: SaveRequest,
    request: Request,
    gateway: GistGateway = Depends(get_gateway),
) -> JSONResponse:
    """Update the given gist or create a new one, and claim it in the cookie."""
    ownership = OwnershipStore.load(request.cookies)
    result, ownership = await gateway.save(
        body.title, body.content, ownership, existing_id=body.gistId
    )
    return _with_cookie(
        {"id": result.id, "url": result.url, "updated": result.updated},
        OwnershipStore.serialize(ownership),
    )


@router.get("/list")
async def list_gists(
    request: Request, gateway: GistGateway = Depends(get_gateway)
) -> dict:
    """Documents owned by this browser that still exist upstream."""
    ownership = OwnershipStore.load(request.cookies)
    documents = await gateway.list_documents(ownership)
    return {
        "gists": [
            {
                "id": d.id,
                "title": d.title,
                "description": d.description,
                "updatedAt": d.updated_at,
                "url": d.url,
            }
            for d in documents
        ]
    }


@router.delete("/delete/{gist_id}")
async def delete_gist(
    gist_id: str,
    request: Request,
    gateway: GistGateway = Depends(get_gateway),
) -> JSONResponse:
    ownership = OwnershipStore.load(request.cookies)
    ownership = await gateway.delete(gist_id, ownership)
    return _with_cookie({"success": True}, OwnershipStore.serialize(ownership))


@router.get("/check-ownership/{gist_id}")
async def check_ownership(gist_id: str, request: Request) -> dict:
    ownership = OwnershipStore.load(request.cookies)
    return {"owned": GistGateway.check_ownership(gist_id, ownership)}


@router.get("/load/{gist_id}")
async def load_gist(
    gist_id: str, gateway: GistGateway = Depends(get_gateway)
) -> dict:
    document = await gateway.load(gist_id)
    return {"content": document.content, "title": document.title}
