"""Provider-level exceptions."""


class ProviderRateLimitError(RuntimeError):
    """Raised when an upstream provider rejects a request with HTTP 429."""

    def __init__(self, provider: str, retry_after: str | None = None):
        self.provider = provider
        self.retry_after = retry_after
        detail = f" (retry after {retry_after}s)" if retry_after else ""
        super().__init__(f"{provider} rate limit exceeded{detail}")
