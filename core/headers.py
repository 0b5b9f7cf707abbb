"""Header construction for upstream requests."""

from collections.abc import Iterable

from core.request_types import ProviderQuirks

BROWSER_HEADERS: dict[str, str] = {
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/122.0.0.0 Safari/537.36"
    ),
    "Accept": "application/json, text/html, */*",
    "Accept-Language": "en-US,en;q=0.5",
}


class HeaderBuilder:
    """Build upstream headers that look like a regular browser request."""

    def __init__(self, base_headers: dict[str, str] | None = None) -> None:
        self._base = dict(base_headers or BROWSER_HEADERS)

    def build(
        self,
        quirks: ProviderQuirks | None = None,
        extra: dict[str, str] | None = None,
    ) -> dict[str, str]:
        """Browser headers, then provider headers, then per-entry headers."""
        upstream = dict(self._base)
        if quirks is not None:
            upstream.update(quirks.headers)
        if extra:
            upstream.update(extra)
        return upstream

    @staticmethod
    def quirks_for(url: str, quirks: Iterable[ProviderQuirks]) -> ProviderQuirks | None:
        """Return the first provider record whose host matches ``url``."""
        return next((q for q in quirks if q.applies_to(url)), None)
