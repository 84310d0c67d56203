from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class Document:
    id: str
    title: str
    content: str  # raw markdown
    created_at: str | None = None
    updated_at: str | None = None


@dataclass
class DocumentSummary:
    id: str
    title: str
    description: str | None
    updated_at: str | None
    url: str


@dataclass
class SaveResult:
    id: str
    url: str
    updated: bool  # False when the document was created (directly or by fallback)


@dataclass(frozen=True)
class OwnershipContext:
    """Document IDs this client claims to own. Advisory only, never verified."""

    owned: tuple[str, ...] = ()

    def __contains__(self, document_id: object) -> bool:
        return document_id in self.owned

    def __len__(self) -> int:
        return len(self.owned)


@dataclass
class SessionState:
    content: str
    title: str
    current_slide_index: int = 0
    last_saved_at: datetime | None = None
    bound_document_id: str | None = None
    notices: list[str] = field(default_factory=list)
