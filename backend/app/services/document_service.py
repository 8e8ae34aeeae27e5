import os
import re
from urllib.parse import quote


def get_file_extension(filename: str) -> str:
    """Extract the file extension without the dot, lowercased."""
    _, ext = os.path.splitext(filename)
    return ext.lstrip(".").lower()


def get_mime_type(filename: str) -> str:
    """Map an order-file extension to its MIME type."""
    ext = get_file_extension(filename)
    mime_map = {
        "csv": "text/csv",
        "txt": "text/plain",
        "tsv": "text/tab-separated-values",
        "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        "pdf": "application/pdf",
        "zip": "application/zip",
    }
    return mime_map.get(ext, "application/octet-stream")


def content_disposition(filename: str, disposition: str = "attachment") -> str:
    """Content-Disposition value safe for latin-1 headers.

    Order ids come from user spreadsheets, so the name may hold any character:
    an ASCII `filename` fallback is sent alongside the RFC 5987 `filename*`.
    """
    fallback = filename.encode("ascii", "ignore").decode("ascii")
    fallback = re.sub(r'["\\\x00-\x1f\x7f]', "_", fallback).strip() or "download"
    return f"{disposition}; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename, safe='')}"
