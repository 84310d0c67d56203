from md2slides.clients.github_client import (
    GistClient,
    GistError,
    GistNotConfigured,
    GistNotFound,
    GistServiceUnavailable,
    GistTransportError,
)

__all__ = [
    "GistClient",
    "GistError",
    "GistNotConfigured",
    "GistNotFound",
    "GistServiceUnavailable",
    "GistTransportError",
]
