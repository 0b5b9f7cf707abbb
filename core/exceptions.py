"""Custom exception hierarchy for the relay."""


class ProxyError(Exception):
    """Base exception for all relay errors."""


class ConfigurationError(ProxyError):
    """Raised when configuration is missing or invalid."""


class UpstreamError(ProxyError):
    """Raised when a single upstream attempt fails.

    Attributes:
        message: Error message, already scrubbed of injected credentials
        status_code: HTTP status code from upstream (optional)
        provider: Upstream host the attempt was sent to
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        provider: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.provider = provider


class UpstreamStatusError(UpstreamError):
    """Raised when upstream answers with a status outside 2xx."""

    def __init__(
        self,
        status_code: int,
        provider: str | None = None,
    ) -> None:
        super().__init__(
            f"Upstream returned HTTP {status_code}",
            status_code=status_code,
            provider=provider,
        )


class UpstreamTimeoutError(UpstreamError):
    """Raised when an upstream request times out."""

    def __init__(
        self,
        message: str,
        provider: str | None = None,
    ) -> None:
        super().__init__(message, status_code=None, provider=provider)


class UpstreamConnectionError(UpstreamError):
    """Raised when unable to connect to an upstream provider."""

    def __init__(
        self,
        message: str,
        provider: str | None = None,
    ) -> None:
        super().__init__(message, status_code=None, provider=provider)


class UpstreamRedirectError(UpstreamError):
    """Raised when the redirect chain exceeds the configured hop count."""

    def __init__(
        self,
        message: str,
        provider: str | None = None,
    ) -> None:
        super().__init__(message, status_code=None, provider=provider)


class BothFailedError(ProxyError):
    """Raised when the primary and the fallback attempt both failed."""

    def __init__(self, primary: UpstreamError, fallback: UpstreamError) -> None:
        super().__init__(f"primary: {primary.message}; fallback: {fallback.message}")
        self.primary = primary
        self.fallback = fallback
