"""Destination policy - maps caller input to an upstream request descriptor."""

import logging
import re
from collections.abc import Mapping, Sequence
from types import MappingProxyType
from urllib.parse import unquote_to_bytes, urlsplit

from core.config import Config, ProviderSettings
from core.exceptions import ConfigurationError
from core.headers import HeaderBuilder
from core.request_types import (
    ProviderQuirks,
    Rejected,
    RejectionKind,
    RequestDescriptor,
    SourceEntry,
    host_of,
)

logger = logging.getLogger(__name__)

_MALFORMED_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


def decode_component(value: str) -> str:
    """Percent-decode ``value`` strictly.

    Raises ValueError on a ``%`` without two hex digits or on escapes that
    do not form valid UTF-8.
    """
    if _MALFORMED_ESCAPE.search(value):
        raise ValueError("malformed percent escape")
    return unquote_to_bytes(value).decode("utf-8")


def build_quirks(
    providers: Sequence[ProviderSettings],
    credentials: Mapping[str, str],
) -> tuple[ProviderQuirks, ...]:
    """Turn provider settings into immutable per-host quirk records."""
    quirks = []
    for provider in providers:
        injected = None
        if provider.secret_param:
            key = credentials.get(provider.name)
            if key:
                injected = (provider.secret_param, key)
            else:
                logger.warning(
                    "No credential configured for provider %s (%s); requests go out without %s",
                    provider.name,
                    provider.host,
                    provider.secret_param,
                )
        quirks.append(
            ProviderQuirks(
                host=provider.host,
                headers=MappingProxyType(dict(provider.headers)),
                injected_param=injected,
            )
        )
    return tuple(quirks)


def build_descriptor(
    url: str,
    quirks: Sequence[ProviderQuirks],
    header_builder: HeaderBuilder,
    extra_headers: dict[str, str] | None = None,
) -> RequestDescriptor:
    """Attach browser headers and any matching provider quirks to ``url``."""
    match = header_builder.quirks_for(url, quirks)
    headers = header_builder.build(match, extra_headers)
    return RequestDescriptor(
        url=url,
        headers=MappingProxyType(headers),
        injected_param=match.injected_param if match else None,
    )


def _require_absolute(name: str, url: str) -> None:
    if urlsplit(url).scheme not in ("http", "https") or not host_of(url):
        raise ConfigurationError(f"Source {name!r} needs an absolute http(s) URL, got {url!r}")


class PolicyResolver:
    """Resolve literal URLs and symbolic source names against the allowlist.

    Pure: no network I/O, and every input yields either a descriptor
    (or source entry) or a :class:`Rejected` value.
    """

    def __init__(
        self,
        allowed_prefixes: Sequence[str],
        sources: Mapping[str, SourceEntry],
        quirks: Sequence[ProviderQuirks] = (),
        header_builder: HeaderBuilder | None = None,
    ) -> None:
        self._prefixes = tuple(allowed_prefixes)
        self._sources = MappingProxyType(dict(sources))
        self._quirks = tuple(quirks)
        self._headers = header_builder or HeaderBuilder()

    @classmethod
    def from_config(
        cls,
        config: Config,
        credentials: Mapping[str, str],
        header_builder: HeaderBuilder | None = None,
    ) -> "PolicyResolver":
        """Build the static policy once, before serving requests."""
        header_builder = header_builder or HeaderBuilder()
        quirks = build_quirks(config.providers, credentials)
        sources = {}
        for name, settings in config.sources.items():
            _require_absolute(name, settings.primary.url)
            fallback = None
            if settings.fallback is not None:
                _require_absolute(name, settings.fallback.url)
                fallback = build_descriptor(
                    settings.fallback.url, quirks, header_builder, settings.fallback.headers
                )
            sources[name] = SourceEntry(
                name=name,
                primary=build_descriptor(
                    settings.primary.url, quirks, header_builder, settings.primary.headers
                ),
                fallback=fallback,
            )
        return cls(config.allowed_prefixes, sources, quirks, header_builder)

    @property
    def source_names(self) -> tuple[str, ...]:
        return tuple(self._sources)

    def resolve_url(self, raw: str) -> RequestDescriptor | Rejected:
        """Resolve a percent-encoded literal URL."""
        try:
            decoded = decode_component(raw)
        except ValueError:
            return Rejected(RejectionKind.BAD_ENCODING)

        if not self.is_allowed(decoded):
            return Rejected(RejectionKind.NOT_ALLOWLISTED, url=decoded)

        return build_descriptor(decoded, self._quirks, self._headers)

    def resolve_source(self, name: str | None) -> SourceEntry | Rejected:
        """Resolve a symbolic source name."""
        entry = self._sources.get(name) if name else None
        if entry is None:
            return Rejected(RejectionKind.UNKNOWN_SOURCE, valid=self.source_names)
        return entry

    def is_allowed(self, url: str) -> bool:
        """Exact, case-sensitive prefix match against the configured allowlist."""
        return any(url.startswith(prefix) for prefix in self._prefixes)
