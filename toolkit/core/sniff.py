"""Content-type sniffing from leading bytes.

Implements the WHATWG MIME sniffing table used by browsers and most HTTP
stacks. Only the first ``SNIFF_LEN`` bytes are inspected and client-declared
types are never consulted.
"""

from collections.abc import Callable

SNIFF_LEN = 512

OCTET_STREAM = "application/octet-stream"
TEXT_PLAIN_UTF8 = "text/plain; charset=utf-8"

_WHITESPACE = b"\t\n\x0c\r "
_BINARY_BYTES = frozenset([*range(0x00, 0x09), 0x0B, *range(0x0E, 0x1B), *range(0x1C, 0x20)])

_HTML_TAGS: tuple[bytes, ...] = (
    b"<!DOCTYPE HTML",
    b"<HTML",
    b"<HEAD",
    b"<SCRIPT",
    b"<IFRAME",
    b"<H1",
    b"<DIV",
    b"<FONT",
    b"<TABLE",
    b"<A",
    b"<STYLE",
    b"<TITLE",
    b"<B",
    b"<BODY",
    b"<BR",
    b"<P",
    b"<!--",
)

# (prefix, mime) pairs matched against the unmodified leading bytes, in priority order
_EXACT_PREFIXES: tuple[tuple[bytes, str], ...] = (
    (b"%PDF-", "application/pdf"),
    (b"%!PS-Adobe-", "application/postscript"),
    # Byte order marks
    (b"\xfe\xff", "text/plain; charset=utf-16be"),
    (b"\xff\xfe", "text/plain; charset=utf-16le"),
    (b"\xef\xbb\xbf", TEXT_PLAIN_UTF8),
    # Images
    (b"\x00\x00\x01\x00", "image/x-icon"),
    (b"\x00\x00\x02\x00", "image/x-icon"),
    (b"BM", "image/bmp"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
)

_LATE_PREFIXES: tuple[tuple[bytes, str], ...] = (
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    # Audio & video
    (b"ID3", "audio/mpeg"),
    (b"OggS\x00", "application/ogg"),
    (b"MThd\x00\x00\x00\x06", "audio/midi"),
)

_MEDIA_TAIL_PREFIXES: tuple[tuple[bytes, str], ...] = (
    (b"\x1a\x45\xdf\xa3", "video/webm"),
    # Fonts
    (b"\x00\x01\x00\x00", "font/ttf"),
    (b"OTTO", "font/otf"),
    (b"ttcf", "font/collection"),
    (b"wOFF", "font/woff"),
    (b"wOF2", "font/woff2"),
    # Archives
    (b"\x1f\x8b\x08", "application/x-gzip"),
    (b"PK\x03\x04", "application/zip"),
    (b"Rar!\x1a\x07\x00", "application/x-rar-compressed"),
    (b"Rar!\x1a\x07\x01\x00", "application/x-rar-compressed"),
    (b"\x00asm", "application/wasm"),
)

# Container formats: four-byte magic, four bytes of length, then a form type
_CHUNKED_CONTAINERS: tuple[tuple[bytes, bytes, str], ...] = (
    (b"RIFF", b"WEBPVP", "image/webp"),
    (b"FORM", b"AIFF", "audio/aiff"),
    (b"RIFF", b"AVI ", "video/avi"),
    (b"RIFF", b"WAVE", "audio/wave"),
)


def _skip_whitespace(data: bytes) -> bytes:
    return data.lstrip(_WHITESPACE)


def _match_html(data: bytes) -> str | None:
    data = _skip_whitespace(data)
    for tag in _HTML_TAGS:
        # Tag must be followed by a tag-terminating byte
        if len(data) <= len(tag):
            continue
        if data[: len(tag)].upper() == tag and data[len(tag)] in b" >":
            return "text/html; charset=utf-8"
    return None


def _match_xml(data: bytes) -> str | None:
    if _skip_whitespace(data).startswith(b"<?xml"):
        return "text/xml; charset=utf-8"
    return None


def _match_prefixes(table: tuple[tuple[bytes, str], ...]) -> Callable[[bytes], str | None]:
    def matcher(data: bytes) -> str | None:
        for prefix, mime in table:
            if data.startswith(prefix):
                return mime
        return None

    return matcher


def _match_chunked(data: bytes) -> str | None:
    for magic, form, mime in _CHUNKED_CONTAINERS:
        if data.startswith(magic) and data[8 : 8 + len(form)] == form:
            return mime
    return None


def _match_mp4(data: bytes) -> str | None:
    """ISO base media file with an ``mp4`` brand in its ``ftyp`` box."""
    if len(data) < 12:
        return None
    box_size = int.from_bytes(data[:4], "big")
    if len(data) < box_size or box_size % 4 != 0:
        return None
    if data[4:8] != b"ftyp":
        return None
    for start in range(8, box_size, 4):
        if start == 12:
            # Minor version, not a brand
            continue
        if data[start : start + 3] == b"mp4":
            return "video/mp4"
    return None


def _match_text(data: bytes) -> str | None:
    if any(byte in _BINARY_BYTES for byte in data):
        return None
    return TEXT_PLAIN_UTF8


_MATCHERS: tuple[Callable[[bytes], str | None], ...] = (
    _match_html,
    _match_xml,
    _match_prefixes(_EXACT_PREFIXES),
    _match_chunked,
    _match_prefixes(_LATE_PREFIXES),
    _match_mp4,
    _match_prefixes(_MEDIA_TAIL_PREFIXES),
    _match_text,
)


def detect_content_type(data: bytes) -> str:
    """Return the MIME type sniffed from the first ``SNIFF_LEN`` bytes of ``data``.

    Always returns a valid type, ``application/octet-stream`` when nothing matches.
    """
    head = bytes(data[:SNIFF_LEN])
    for matcher in _MATCHERS:
        if mime := matcher(head):
            return mime
    return OCTET_STREAM
