import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Protocol

from md2slides.clients import GistError
from md2slides.config import settings
from md2slides.models import OwnershipContext, SessionState
from md2slides.services.gists import GistGateway
from md2slides.services.slides import SlideService

logger = logging.getLogger(__name__)

CONTENT_KEY = "md2slides-content"
TITLE_KEY = "md2slides-title"

DEFAULT_TITLE = "My Presentation"
CLEARED_CONTENT = "# New Presentation\n\nStart typing..."

DEFAULT_CONTENT = """# Welcome to md2slides

Transform your markdown into beautiful presentations

Press **Present** to start

# Getting Started

Just write markdown and watch it become slides

- Each `# heading` or `## heading` creates a new slide
- Use **bold**, *italic*, and `code` for emphasis
- Add lists, links, and more!

# Code Blocks Supported

```python
def hello():
    print("Hello, md2slides!")
```

Syntax highlighting included!

# Ready?

Start creating your presentation now!
"""


class KeyValueStore(Protocol):
    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str) -> None: ...


# ---------------------------------------------------------------------------
# Debounce
# ---------------------------------------------------------------------------


class AutosaveScheduler:
    """Debounced, cancellable scheduling of an async callback.

    ``schedule()`` replaces any pending (not yet fired) call with a fresh one
    ``delay`` seconds out. Once a call has fired it runs to completion even
    if new calls are scheduled meanwhile, so two saves may overlap on the
    network.
    """

    def __init__(self, delay: float | None = None) -> None:
        self.delay = settings.autosave_delay_seconds if delay is None else delay
        self._pending: asyncio.Task | None = None
        self._pending_callback: Callable[[], Awaitable[None]] | None = None
        self._running: set[asyncio.Task] = set()

    @property
    def pending(self) -> bool:
        return self._pending is not None and not self._pending.done()

    def schedule(self, callback: Callable[[], Awaitable[None]]) -> None:
        self.cancel()
        self._pending_callback = callback
        self._pending = asyncio.get_running_loop().create_task(
            self._fire_after_delay(callback)
        )

    def cancel(self) -> None:
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None
        self._pending_callback = None

    async def flush(self) -> None:
        """Run the pending callback now instead of waiting out the delay."""
        callback = self._pending_callback
        if callback is None or not self.pending:
            return
        self.cancel()
        await callback()

    async def wait(self) -> None:
        """Wait for the pending call (if any) and every in-flight call to finish."""
        if self._pending is not None:
            try:
                await self._pending
            except asyncio.CancelledError:
                pass
        if self._running:
            await asyncio.gather(*self._running, return_exceptions=True)

    async def _fire_after_delay(self, callback: Callable[[], Awaitable[None]]) -> None:
        await asyncio.sleep(self.delay)
        # Fired: detach so a later schedule() cannot cancel the running save.
        self._pending = None
        self._pending_callback = None
        task = asyncio.current_task()
        self._running.add(task)
        try:
            await callback()
        finally:
            self._running.discard(task)


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


class PresentationSession:
    """One editor: live markdown, slide navigation, autosave and sharing.

    Local drafts are always written on autosave. Remote saves only happen
    once the session is bound to a document, i.e. after ``publish()`` or
    after opening a document this client owns.
    """

    def __init__(
        self,
        gateway: GistGateway,
        storage: KeyValueStore,
        *,
        scheduler: AutosaveScheduler | None = None,
        ownership: OwnershipContext | None = None,
        share_base_url: str | None = None,
    ) -> None:
        self.gateway = gateway
        self.storage = storage
        self.scheduler = scheduler or AutosaveScheduler()
        self.ownership = ownership or OwnershipContext()
        self.share_base_url = (share_base_url or settings.public_url).rstrip("/")
        self.state = SessionState(content=DEFAULT_CONTENT, title=DEFAULT_TITLE)
        self.location = "/editor"

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    async def open(self, document_id: str | None = None) -> None:
        """Restore the local draft, then load *document_id* if given."""
        self.state.content = await self.storage.get(CONTENT_KEY) or DEFAULT_CONTENT
        self.state.title = await self.storage.get(TITLE_KEY) or DEFAULT_TITLE
        if document_id is None:
            return

        self.location = f"/editor?gist={document_id}"
        try:
            document = await self.gateway.load(document_id)
        except GistError as e:
            logger.error("Failed to load gist %s: %s", document_id, e.message)
            self._notify("Failed to load presentation from Gist")
            return

        self.state.content = document.content
        self.state.title = document.title
        self.state.current_slide_index = 0
        if self.gateway.check_ownership(document_id, self.ownership):
            self.state.bound_document_id = document_id
        else:
            self.state.bound_document_id = None

    async def flush(self) -> None:
        await self.scheduler.flush()

    async def close(self) -> None:
        self.scheduler.cancel()

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------
    @property
    def content(self) -> str:
        return self.state.content

    @property
    def title(self) -> str:
        return self.state.title

    @property
    def bound_document_id(self) -> str | None:
        return self.state.bound_document_id

    def set_content(self, content: str) -> None:
        self.state.content = content
        self.scheduler.schedule(self.autosave)

    def set_title(self, title: str) -> None:
        self.state.title = title
        self.scheduler.schedule(self.autosave)

    def clear(self) -> None:
        """Start over with an empty deck, detached from any document."""
        self.state.content = CLEARED_CONTENT
        self.state.title = DEFAULT_TITLE
        self.state.current_slide_index = 0
        self.state.bound_document_id = None
        self.location = "/editor"
        self.scheduler.schedule(self.autosave)

    async def autosave(self) -> None:
        title, content = self.state.title, self.state.content
        try:
            await self.storage.set(CONTENT_KEY, content)
            await self.storage.set(TITLE_KEY, title)
        except Exception as e:
            logger.warning("Saving local draft failed: %s", e)
        else:
            self.state.last_saved_at = datetime.now(timezone.utc)

        bound_id = self.state.bound_document_id
        if bound_id is None:
            return
        try:
            result, self.ownership = await self.gateway.save(
                title, content, self.ownership, bound_id
            )
        except GistError as e:
            logger.warning("Auto-save to gist %s failed: %s", bound_id, e.message)
            return
        if result.id != bound_id and self.state.bound_document_id == bound_id:
            logger.info("Gist %s was forked to %s on auto-save", bound_id, result.id)
            self._bind(result.id)

    # ------------------------------------------------------------------
    # Slides
    # ------------------------------------------------------------------
    @property
    def slides(self) -> list[str]:
        return SlideService.segment(self.state.content)

    @property
    def current_slide_index(self) -> int:
        return SlideService.clamp_index(
            self.state.current_slide_index, len(self.slides)
        )

    def go_to(self, index: int) -> int:
        self.state.current_slide_index = SlideService.clamp_index(
            index, len(self.slides)
        )
        return self.state.current_slide_index

    def next_slide(self) -> int:
        return self.go_to(self.current_slide_index + 1)

    def previous_slide(self) -> int:
        return self.go_to(self.current_slide_index - 1)

    def current_slide_html(self) -> str:
        return SlideService.render_slide(
            self.state.content, self.state.current_slide_index
        )

    # ------------------------------------------------------------------
    # Sharing
    # ------------------------------------------------------------------
    def share_url(self, document_id: str) -> str:
        return f"{self.share_base_url}/#/editor?gist={document_id}"

    async def publish(self) -> str | None:
        """Share URL for this deck, publishing it first if it is not bound yet."""
        if self.state.bound_document_id is not None:
            return self.share_url(self.state.bound_document_id)
        try:
            result, self.ownership = await self.gateway.save(
                self.state.title, self.state.content, self.ownership
            )
        except GistError as e:
            logger.error("Failed to publish to gist: %s", e.message)
            self._notify("Failed to publish to Gist")
            return None
        self._bind(result.id)
        return self.share_url(result.id)

    # ------------------------------------------------------------------
    # Notices
    # ------------------------------------------------------------------
    @property
    def notices(self) -> list[str]:
        return list(self.state.notices)

    def dismiss_notice(self, index: int = 0) -> None:
        if 0 <= index < len(self.state.notices):
            del self.state.notices[index]

    def _notify(self, message: str) -> None:
        self.state.notices.append(message)

    def _bind(self, document_id: str) -> None:
        self.state.bound_document_id = document_id
        self.location = f"/editor?gist={document_id}"
