"""Shared request data types."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from urllib.parse import quote, urlsplit


@dataclass(frozen=True)
class ProviderQuirks:
    """Provider-specific policy attached to every descriptor for its host."""

    host: str
    headers: Mapping[str, str] = field(default_factory=dict)
    injected_param: tuple[str, str] | None = field(default=None, repr=False)

    def applies_to(self, url: str) -> bool:
        return host_of(url) == self.host


@dataclass(frozen=True)
class RequestDescriptor:
    """One concrete upstream call.

    ``url`` never contains the injected credential; it is only appended
    by :meth:`outbound_url` when the request is dispatched.
    """

    url: str
    headers: Mapping[str, str]
    injected_param: tuple[str, str] | None = field(default=None, repr=False)

    @property
    def host(self) -> str:
        return host_of(self.url)

    def outbound_url(self) -> str:
        """Return the URL to dispatch, with the credential parameter appended."""
        if self.injected_param is None:
            return self.url
        name, value = self.injected_param
        sep = "&" if "?" in self.url else "?"
        return f"{self.url}{sep}{name}={quote(value, safe='')}"

    def scrub(self, text: str) -> str:
        """Remove the injected credential from text meant for callers or logs."""
        if self.injected_param is None or not self.injected_param[1]:
            return text
        value = self.injected_param[1]
        text = text.replace(quote(value, safe=""), "***")
        return text.replace(value, "***")

    def scrub_bytes(self, body: bytes) -> bytes:
        """Remove the injected credential from a relayed body."""
        if self.injected_param is None or not self.injected_param[1]:
            return body
        value = self.injected_param[1]
        body = body.replace(quote(value, safe="").encode(), b"***")
        return body.replace(value.encode(), b"***")


@dataclass(frozen=True)
class SourceEntry:
    """A primary descriptor and an optional fallback, owned exclusively."""

    name: str
    primary: RequestDescriptor
    fallback: RequestDescriptor | None = None


@dataclass(frozen=True)
class UpstreamOutcome:
    """Result of a successful upstream call."""

    status_code: int
    body: bytes
    content_type: str
    used_fallback: bool = False


class RejectionKind(str, Enum):
    BAD_ENCODING = "BadEncoding"
    NOT_ALLOWLISTED = "NotAllowlisted"
    UNKNOWN_SOURCE = "UnknownSource"


@dataclass(frozen=True)
class Rejected:
    """Policy rejection produced before any network call."""

    kind: RejectionKind
    url: str | None = None
    valid: tuple[str, ...] = ()


def host_of(url: str) -> str:
    try:
        return urlsplit(url).hostname or ""
    except ValueError:
        return ""
