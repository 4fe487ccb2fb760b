"""suffixbot exception classes."""


class SuffixBotError(Exception):
    """Base exception for all suffixbot errors."""

    def __init__(self, code: str, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(f"[{code}] {message}")


class ConfigurationError(SuffixBotError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, message: str) -> None:
        super().__init__("CONFIGURATION_ERROR", message)


class ContextError(SuffixBotError):
    """Raised when pull request context cannot be assembled."""

    def __init__(self, message: str) -> None:
        super().__init__("CONTEXT_ERROR", message)


class RegistryUnavailableError(SuffixBotError):
    """Raised when the SLD registry has no usable data (no source, no cache)."""

    def __init__(self, message: str) -> None:
        super().__init__("REGISTRY_UNAVAILABLE", message)


class RegistryFormatError(SuffixBotError):
    """Raised when the SLD registry source has an invalid shape."""

    def __init__(self, message: str) -> None:
        super().__init__("REGISTRY_FORMAT_ERROR", message)


class DNSSyncError(SuffixBotError):
    """Raised when a DNS synchronization step fails."""

    def __init__(self, message: str) -> None:
        super().__init__("DNS_SYNC_ERROR", message)


class APIError(SuffixBotError):
    """Base exception for errors returned by an external HTTP API."""

    def __init__(
        self, code: str, message: str, status_code: int | None = None
    ) -> None:
        super().__init__(code, message)
        self.status_code = status_code


class AuthenticationError(APIError):
    """Raised when credentials are rejected (401)."""

    pass


class AuthorizationError(APIError):
    """Raised when access is denied (403)."""

    pass


class NotFoundError(APIError):
    """Raised when a resource is not found (404)."""

    pass


class ConflictError(APIError):
    """Raised on conflicting updates (409)."""

    pass


class APIValidationError(APIError):
    """Raised when the API rejects a request payload (422 and other 4xx)."""

    pass


class RateLimitedError(APIError):
    """Raised when rate limited."""

    def __init__(
        self,
        code: str,
        message: str,
        retry_after: int,
        status_code: int | None = 429,
    ) -> None:
        super().__init__(code, message, status_code)
        self.retry_after = retry_after


class ServerError(APIError):
    """Raised on server errors (5xx) and exhausted connection retries."""

    pass
