"""Content type detection for relayed bodies."""

JSON_CONTENT_TYPE = "application/json"
TEXT_CONTENT_TYPE = "text/plain; charset=utf-8"
BINARY_CONTENT_TYPE = "application/octet-stream"


def sniff_content_type(body: bytes) -> str:
    """Guess a content type for a body that came without one."""
    stripped = body.lstrip()
    if stripped.startswith((b"{", b"[")):
        return JSON_CONTENT_TYPE
    try:
        body.decode("utf-8")
    except UnicodeDecodeError:
        return BINARY_CONTENT_TYPE
    return TEXT_CONTENT_TYPE


def resolve_content_type(header_value: str | None, body: bytes) -> str:
    """Prefer the upstream header; fall back to sniffing the body."""
    if header_value and header_value.strip():
        return header_value
    return sniff_content_type(body)
