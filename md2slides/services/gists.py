import asyncio
import json
import logging
from datetime import datetime, timezone

from pydantic import BaseModel, ValidationError

from md2slides.clients import GistClient, GistError, GistNotConfigured, GistNotFound
from md2slides.clients.github_client import RemoteGist
from md2slides.config import settings
from md2slides.models import Document, DocumentSummary, OwnershipContext, SaveResult
from md2slides.services.ownership import OwnershipStore

logger = logging.getLogger(__name__)

CONTENT_FILE = "presentation.md"
METADATA_FILE = "metadata.json"


class DocumentMetadata(BaseModel):
    title: str | None = None
    createdAt: str | None = None
    updatedAt: str | None = None

    model_config = {"extra": "ignore"}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    """UTC timestamp in the ``2024-01-31T12:00:00.000Z`` form."""
    stamp = datetime.now(timezone.utc).isoformat(timespec="milliseconds")
    return stamp.replace("+00:00", "Z")


def _gist_payload(title: str, content: str) -> dict:
    now = _now_iso()
    return {
        "description": title or settings.default_description,
        "public": False,
        "files": {
            CONTENT_FILE: {"content": content},
            METADATA_FILE: {
                "content": json.dumps(
                    {"title": title, "createdAt": now, "updatedAt": now}
                ),
            },
        },
    }


def _read_metadata(gist: RemoteGist) -> DocumentMetadata:
    """Metadata entry of *gist*; absent or unparsable entries give the defaults."""
    entry = gist.file(METADATA_FILE)
    if entry is None or not entry.content:
        return DocumentMetadata()
    try:
        return DocumentMetadata.model_validate(json.loads(entry.content))
    except (ValueError, ValidationError):
        logger.debug("Malformed metadata in gist %s, using default title", gist.id)
        return DocumentMetadata()


def _title_of(metadata: DocumentMetadata) -> str:
    return metadata.title or settings.default_title


# ---------------------------------------------------------------------------
# Gateway
# ---------------------------------------------------------------------------


class GistGateway:
    """Save, load, list and delete presentations stored as GitHub gists.

    Ownership is passed in and handed back as an ``OwnershipContext``; the
    gateway never reads or writes cookies itself. Failures are absorbed
    wherever a fallback exists:

    * a failed update turns into a fresh create (``updated=False``),
    * a document that cannot be fetched is left out of ``list_documents``,
    * deleting a document that is already gone succeeds.

    Only ``load`` and a failed create surface errors to the caller.
    """

    def __init__(self, client: GistClient | None = None) -> None:
        self.client = client or GistClient()

    @property
    def configured(self) -> bool:
        return self.client.configured

    async def save(
        self,
        title: str,
        content: str,
        ownership: OwnershipContext,
        existing_id: str | None = None,
    ) -> tuple[SaveResult, OwnershipContext]:
        """Update *existing_id* or create a new gist, and claim the result."""
        if not self.configured:
            raise GistNotConfigured()
        payload = _gist_payload(title, content)

        gist: RemoteGist | None = None
        updated = False
        if existing_id:
            try:
                gist = await self.client.update(existing_id, payload)
                updated = True
            except GistError as e:
                # Not ours, deleted upstream or unreachable: fork a new gist.
                logger.info(
                    "Update of gist %s failed (%s), creating new gist",
                    existing_id, e.message,
                )

        if gist is None:
            gist = await self.client.create(payload)

        document_id = existing_id if updated else gist.id
        result = SaveResult(id=document_id, url=gist.html_url, updated=updated)
        return result, OwnershipStore.add(ownership, document_id)

    async def load(self, document_id: str) -> Document:
        """Fetch one document. Raises ``GistNotFound`` or ``GistServiceUnavailable``."""
        gist = await self.client.get(document_id)

        content = ""
        entry = gist.file(CONTENT_FILE)
        if entry is not None:
            if entry.truncated and entry.raw_url:
                content = await self.client.get_raw(entry.raw_url)
            else:
                content = entry.content or ""

        metadata = _read_metadata(gist)
        return Document(
            id=gist.id,
            title=_title_of(metadata),
            content=content,
            created_at=metadata.createdAt or gist.created_at,
            updated_at=metadata.updatedAt or gist.updated_at,
        )

    async def list_documents(
        self, ownership: OwnershipContext
    ) -> list[DocumentSummary]:
        """Summaries of every owned document that can still be fetched."""
        if not self.configured or not ownership.owned:
            return []
        results = await asyncio.gather(
            *(self._summary(document_id) for document_id in ownership.owned)
        )
        return [summary for summary in results if summary is not None]

    async def _summary(self, document_id: str) -> DocumentSummary | None:
        try:
            gist = await self.client.get(document_id)
        except GistError as e:
            logger.debug("Dropping gist %s from list: %s", document_id, e.message)
            return None
        return DocumentSummary(
            id=gist.id,
            title=_title_of(_read_metadata(gist)),
            description=gist.description,
            updated_at=gist.updated_at,
            url=gist.html_url,
        )

    async def delete(
        self, document_id: str, ownership: OwnershipContext
    ) -> OwnershipContext:
        """Delete upstream (already-gone counts as done) and drop the claim."""
        try:
            await self.client.delete(document_id)
        except GistNotFound:
            logger.info("Gist %s already deleted upstream", document_id)
        return OwnershipStore.remove(ownership, document_id)

    @staticmethod
    def check_ownership(document_id: str, ownership: OwnershipContext) -> bool:
        return OwnershipStore.owns(ownership, document_id)
