"""Error kinds raised by the OpenAQ client."""

from typing import Any, Mapping, Optional


class OpenAQError(Exception):
    """Base error; carries the request it failed on."""

    def __init__(
        self,
        message: str,
        *,
        path: Optional[str] = None,
        query: Optional[Mapping[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.path = path
        self.query = dict(query) if query is not None else None

    def __str__(self) -> str:
        msg = super().__str__()
        if self.path is None:
            return msg
        return f"{msg} (path={self.path} query={self.query})"


class ConfigurationError(OpenAQError):
    """Missing or invalid client configuration."""


class TransportError(OpenAQError):
    """Upstream could not be reached (DNS, connect, timeout)."""


class UpstreamError(OpenAQError):
    def __init__(
        self,
        status: int,
        body: str,
        *,
        path: Optional[str] = None,
        query: Optional[Mapping[str, Any]] = None,
    ) -> None:
        super().__init__(f"OpenAQ returned HTTP {status}", path=path, query=query)
        self.status = status
        self.body = body


class DecodeError(OpenAQError):
    """2xx response whose body is not valid JSON."""
