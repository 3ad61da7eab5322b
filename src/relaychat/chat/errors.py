"""Error taxonomy for chat generation, framing and reassembly."""

from __future__ import annotations


class RelayChatError(Exception):
    """Base class for all relaychat errors.

    ``status_code`` is the HTTP status reported when the error surfaces
    before a stream has been opened.
    """

    status_code = 500


class InvalidRequestError(RelayChatError):
    """Malformed or empty input. Raised before any provider is contacted."""

    status_code = 400


class UnsupportedProviderError(RelayChatError):
    """Provider selector is not one of the known backends."""

    status_code = 400

    def __init__(self, provider: object) -> None:
        self.provider = provider
        super().__init__(f"Unsupported AI provider: {provider}")


class UpstreamRequestError(RelayChatError):
    """The backend rejected the request before any text was produced."""

    status_code = 502

    def __init__(self, provider: str, cause: BaseException | None = None, message: str | None = None) -> None:
        self.provider = provider
        self.cause = cause
        if message is None:
            message = f"{provider} request failed"
            if cause is not None:
                message = f"{message}: {cause}"
        super().__init__(message)


class ProviderNotConfiguredError(UpstreamRequestError):
    """The selected provider has no API key configured."""

    status_code = 503

    def __init__(self, provider: str) -> None:
        super().__init__(provider, message=f"{provider} is not configured (missing API key)")


class UpstreamStreamInterruptedError(RelayChatError):
    """The backend failed after partial output was already delivered.

    Must not be retried transparently: the consumer has seen
    ``fragments_emitted`` fragments.
    """

    status_code = 502

    def __init__(self, provider: str, fragments_emitted: int, cause: BaseException | None = None) -> None:
        self.provider = provider
        self.fragments_emitted = fragments_emitted
        self.cause = cause
        super().__init__(f"{provider} stream interrupted after {fragments_emitted} fragment(s): {cause}")


class StreamTimeoutError(RelayChatError, TimeoutError):
    """Wall-clock ceiling for one request's generation was exceeded."""

    status_code = 504

    def __init__(self, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(f"Generation exceeded {timeout:g}s")


class StreamAlreadyConsumedError(RelayChatError):
    """A fragment stream was iterated a second time."""


class MalformedFrameError(RelayChatError):
    """A single frame could not be decoded on the client side."""

    def __init__(self, frame: str, reason: str) -> None:
        self.frame = frame
        self.reason = reason
        super().__init__(f"Malformed frame ({reason}): {frame[:80]!r}")
