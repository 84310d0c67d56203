import logging
import re

import httpx
from pydantic import BaseModel, ValidationError

from md2slides.config import settings

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class GistError(Exception):
    """Base class for everything the Gist API layer can raise."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class GistNotFound(GistError):
    status_code = 404


class GistServiceUnavailable(GistError):
    """The remote API cannot be used: missing credential or a failed call."""

    status_code = 503


class GistNotConfigured(GistServiceUnavailable):
    status_code = 500

    def __init__(self, message: str = "GitHub token not configured") -> None:
        super().__init__(message)


class GistTransportError(GistServiceUnavailable):
    status_code = 502

    def __init__(self, message: str, upstream_status: int | None = None) -> None:
        super().__init__(message)
        self.upstream_status = upstream_status


# ---------------------------------------------------------------------------
# Remote schema. GitHub returns a lot more; everything here is optional.
# ---------------------------------------------------------------------------


class RemoteFile(BaseModel):
    filename: str | None = None
    content: str | None = None
    truncated: bool = False
    raw_url: str | None = None


class RemoteGist(BaseModel):
    id: str
    description: str | None = None
    html_url: str = ""
    created_at: str | None = None
    updated_at: str | None = None
    files: dict[str, RemoteFile | None] = {}

    model_config = {"extra": "ignore"}

    def file(self, name: str) -> RemoteFile | None:
        return self.files.get(name)


# Gist IDs are hex strings; anything else can't name a gist.
GIST_ID = re.compile(r"[A-Za-z0-9]+")


def _gist_path(gist_id: str) -> str:
    if not GIST_ID.fullmatch(gist_id):
        raise GistNotFound("Gist not found")
    return f"/gists/{gist_id}"


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class GistClient:
    """Async wrapper around the GitHub Gist REST API.

    Usage::

        gists = GistClient()                         # token from GITHUB_TOKEN
        gist = await gists.create({"files": {...}})  # -> RemoteGist
        gist = await gists.get(gist.id)
        await gists.delete(gist.id)
        await gists.aclose()

    Every non-2xx answer and every network failure is turned into a
    ``GistError``: 404 becomes ``GistNotFound``, anything else
    ``GistTransportError``. Calls made without a token raise
    ``GistNotConfigured`` before touching the network.
    """

    def __init__(
        self,
        token: str | None = None,
        *,
        base_url: str | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._token = settings.github_token if token is None else token
        self._client = http_client or httpx.AsyncClient(
            base_url=base_url or settings.github_api_url,
            timeout=settings.http_timeout_seconds,
        )

    @property
    def configured(self) -> bool:
        return bool(self._token)

    async def aclose(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Gist endpoints
    # ------------------------------------------------------------------
    async def create(self, payload: dict) -> RemoteGist:
        resp = await self._request("POST", "/gists", json=payload)
        return self._parse(resp)

    async def update(self, gist_id: str, payload: dict) -> RemoteGist:
        resp = await self._request("PATCH", _gist_path(gist_id), json=payload)
        return self._parse(resp)

    async def get(self, gist_id: str) -> RemoteGist:
        resp = await self._request("GET", _gist_path(gist_id))
        return self._parse(resp)

    async def delete(self, gist_id: str) -> None:
        await self._request("DELETE", _gist_path(gist_id))

    async def get_raw(self, url: str) -> str:
        """Fetch a file body through its ``raw_url`` (used for truncated files)."""
        resp = await self._request("GET", url)
        return resp.text

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------
    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"token {self._token}",
            "Accept": "application/vnd.github+json",
            "User-Agent": settings.user_agent,
        }

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        if not self.configured:
            raise GistNotConfigured()
        try:
            resp = await self._client.request(
                method, url, headers=self._headers(), **kwargs
            )
        except httpx.HTTPError as e:
            logger.error("GitHub API %s %s failed: %s", method, url, e)
            raise GistTransportError(f"GitHub API unreachable: {e}") from e

        if resp.status_code == 404:
            raise GistNotFound("Gist not found")
        if resp.is_error:
            logger.error(
                "GitHub API %s %s returned %s: %s",
                method, url, resp.status_code, resp.text[:500],
            )
            raise GistTransportError(
                f"GitHub API error ({resp.status_code})",
                upstream_status=resp.status_code,
            )
        return resp

    @staticmethod
    def _parse(resp: httpx.Response) -> RemoteGist:
        try:
            return RemoteGist.model_validate(resp.json())
        except (ValueError, ValidationError) as e:
            raise GistTransportError(f"Unexpected GitHub API response: {e}") from e
