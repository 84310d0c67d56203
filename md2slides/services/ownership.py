import json
from collections.abc import Mapping
from urllib.parse import quote, unquote

from md2slides.config import settings
from md2slides.models import OwnershipContext

# Characters encodeURIComponent leaves alone that are also legal in a
# cookie value without quoting.
_COOKIE_SAFE = "-_.~!*'"


class OwnershipStore:
    """Read and write the owned-document list carried in the ownership cookie.

    The cookie value is URL-encoded JSON, e.g. ``%5B%22abc%22%5D`` for
    ``["abc"]``. Anyone holding the string can claim the IDs in it; nothing
    here authenticates it.
    """

    @staticmethod
    def load(cookies: Mapping[str, str]) -> OwnershipContext:
        """Parse the ownership cookie. Missing or corrupt cookies give an empty context."""
        raw = cookies.get(settings.cookie_name)
        if not raw:
            return OwnershipContext()
        try:
            decoded = json.loads(unquote(raw))
        except ValueError:
            return OwnershipContext()
        if not isinstance(decoded, list):
            return OwnershipContext()

        owned: list[str] = []
        for item in decoded:
            if isinstance(item, str) and item and item not in owned:
                owned.append(item)
        return OwnershipContext(tuple(owned))

    @staticmethod
    def add(ownership: OwnershipContext, document_id: str) -> OwnershipContext:
        if document_id in ownership.owned:
            return ownership
        return OwnershipContext(ownership.owned + (document_id,))

    @staticmethod
    def remove(ownership: OwnershipContext, document_id: str) -> OwnershipContext:
        if document_id not in ownership.owned:
            return ownership
        return OwnershipContext(
            tuple(i for i in ownership.owned if i != document_id)
        )

    @staticmethod
    def owns(ownership: OwnershipContext, document_id: str) -> bool:
        return document_id in ownership.owned

    @staticmethod
    def encode(ownership: OwnershipContext) -> str:
        """Cookie value only (URL-encoded compact JSON array)."""
        payload = json.dumps(list(ownership.owned), separators=(",", ":"))
        return quote(payload, safe=_COOKIE_SAFE)

    @staticmethod
    def serialize(ownership: OwnershipContext) -> str:
        """Full ``Set-Cookie`` header value for *ownership*."""
        return (
            f"{settings.cookie_name}={OwnershipStore.encode(ownership)}; "
            f"Path=/; Max-Age={settings.cookie_max_age}; SameSite=Lax"
        )
