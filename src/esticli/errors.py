"""Error types surfaced by esticli.

Every error carries a human-readable message; the dashboard shows ``str(err)``
verbatim in its error banner.
"""


class EstiCliError(Exception):
    """Base class for all esticli errors."""


class TransportError(EstiCliError):
    """Network or connection failure talking to the cluster."""

    def __init__(self, detail: str) -> None:
        super().__init__(f"Elasticsearch connection failed: {detail}")
        self.detail = detail


class ApiError(EstiCliError):
    """Cluster answered with a non-success HTTP status."""

    def __init__(self, status: int, body: str) -> None:
        super().__init__(f"API error (Status {status}): {body}")
        self.status = status
        self.body = body


class SerializationError(EstiCliError):
    """Response body could not be decoded into the expected shape."""

    def __init__(self, detail: str) -> None:
        super().__init__(f"Failed to parse Elasticsearch response: {detail}")
        self.detail = detail


class ConfigurationError(EstiCliError):
    """Invalid startup configuration (bad URL, unreadable CA bundle, bad config file)."""


class FilterCompileError(EstiCliError):
    """A filter expression failed to compile. Shown inline, never fatal."""


class InternalError(EstiCliError):
    """Unexpected condition inside esticli itself."""

    def __init__(self, detail: str) -> None:
        super().__init__(f"Internal error: {detail}")
        self.detail = detail
