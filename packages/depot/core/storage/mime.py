"""MIME type detection for stored files."""

from __future__ import annotations

import mimetypes

# Leading bytes of common binary formats
_SIGNATURES: tuple[tuple[bytes, str], ...] = (
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"%PDF-", "application/pdf"),
    (b"PK\x03\x04", "application/zip"),
    (b"\x1f\x8b", "application/gzip"),
    (b"BM", "image/bmp"),
    (b"ID3", "audio/mpeg"),
    (b"OggS", "audio/ogg"),
    (b"fLaC", "audio/flac"),
)

SNIFF_BYTES = 2048


def _sniff(head: bytes) -> str | None:
    for signature, mime in _SIGNATURES:
        if head.startswith(signature):
            return mime
    if head[:4] == b"RIFF" and head[8:12] == b"WEBP":
        return "image/webp"
    if head[:4] == b"RIFF" and head[8:12] == b"WAVE":
        return "audio/x-wav"
    return None


def detect_mime_type(name: str, head: bytes) -> str:
    """
    Detect the MIME type of a file.

    Content signatures win over the filename; the filename extension is
    consulted next; content that decodes as UTF-8 falls back to text/plain.

    Args:
        name: Storage path or filename (only its extension is used)
        head: Leading bytes of the file (SNIFF_BYTES is enough)

    Returns:
        MIME type string

    Example:
        >>> detect_mime_type("notes", b"hello")
        'text/plain'
        >>> detect_mime_type("blob.bin", b"")
        'application/x-empty'
    """
    head = head[:SNIFF_BYTES]
    if not head:
        return "application/x-empty"

    sniffed = _sniff(head)
    if sniffed is not None:
        return sniffed

    guessed, _ = mimetypes.guess_type(name, strict=False)
    if guessed is not None:
        return guessed

    try:
        head.decode("utf-8")
    except UnicodeDecodeError as e:
        # A multi-byte sequence cut at the sniff boundary is still text.
        truncated = e.reason == "unexpected end of data" and len(head) >= SNIFF_BYTES
        if not truncated:
            return "application/octet-stream"
    return "text/plain"
