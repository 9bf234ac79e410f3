# =============================================================================
# core/errors.py  —  Gateway exceptions
# =============================================================================
# Raised by core/backend.py.  The tools layer maps them onto MCP error codes
# (see tools/registry.py); nothing in here knows about MCP.
# =============================================================================


class TibenError(Exception):
    """Base exception for everything the backend gateway raises."""

    pass


class BackendError(TibenError):
    """The backend answered with a non-2xx status."""

    def __init__(self, status: int, body: str) -> None:
        self.status = status
        self.body = body
        super().__init__(f"Backend API error: {status} - {body}")


class ImageNotFoundError(TibenError):
    """A local image path does not exist.  Raised before any network I/O."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"File not found: {path}")
