"""Error taxonomy.

ConfigError aborts a run before any source is touched. FetchError and
WriteError are per-source: the runner records them and moves on.
"""

from __future__ import annotations


class ContextError(Exception):
    """Base class for all copilot-context errors."""


class ConfigError(ContextError):
    """The configuration is malformed; nothing can be resolved."""


# ── Fetch ───────────────────────────────────────────────────────────


class FetchError(ContextError):
    """A source could not be resolved to files."""


class NotFoundError(FetchError):
    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class NetworkError(FetchError):
    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class AuthError(FetchError):
    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class NonZeroExitError(FetchError):
    def __init__(self, exit_code: int, stderr: str) -> None:
        self.exit_code = exit_code
        self.stderr = stderr
        detail = stderr.strip()
        message = f"script exited with status {exit_code}"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class CloneError(FetchError):
    """git clone or checkout failed."""


class CycleDetectedError(FetchError):
    """A symlink loop was found while walking a path source."""


class FetchTimeoutError(FetchError):
    """The per-source timeout elapsed."""


class FetchCancelledError(FetchError):
    """The run was aborted while this source was in flight."""


# ── Write ───────────────────────────────────────────────────────────


class WriteError(ContextError):
    """Fetched files could not be persisted into the context folder."""

    def __init__(self, message: str, *, path: str | None = None) -> None:
        self.path = path
        super().__init__(message)


class PermissionDeniedError(WriteError):
    pass


class DiskFullError(WriteError):
    pass


class PathEscapeError(WriteError):
    """A target resolved outside the context root."""
