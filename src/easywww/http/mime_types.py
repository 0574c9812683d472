"""
=============================================================================
MIME TYPE LOOKUP
=============================================================================

Maps file extensions to MIME types for the Content-Type header of
statically served files.

    index.html  →  text/html
    logo.png    →  image/png
    archive     →  application/octet-stream   (no extension)
    data.xyz    →  application/octet-stream   (unknown extension)

The static resolver always appends "; charset=utf-8" to whatever this
module returns, so the table holds bare types only.

Extensions are stored without the leading dot and in lowercase.

=============================================================================
"""

from pathlib import PurePosixPath
from typing import Optional


MIME_TYPES = {
    # -------------------------------------------------------------------------
    # TEXT
    # -------------------------------------------------------------------------
    "html": "text/html",
    "htm": "text/html",
    "xhtml": "application/xhtml+xml",
    "css": "text/css",
    "csv": "text/csv",
    "ics": "text/calendar",
    "js": "text/javascript",
    "mjs": "text/javascript",
    "json": "application/json",
    "jsonld": "application/ld+json",
    "md": "text/markdown",
    "txt": "text/plain",
    "xml": "application/xml",

    # -------------------------------------------------------------------------
    # IMAGES
    # -------------------------------------------------------------------------
    "avif": "image/avif",
    "bmp": "image/bmp",
    "gif": "image/gif",
    "ico": "image/vnd.microsoft.icon",
    "jpeg": "image/jpeg",
    "jpg": "image/jpeg",
    "png": "image/png",
    "svg": "image/svg+xml",
    "tif": "image/tiff",
    "tiff": "image/tiff",
    "webp": "image/webp",

    # -------------------------------------------------------------------------
    # FONTS
    # -------------------------------------------------------------------------
    "eot": "application/vnd.ms-fontobject",
    "otf": "font/otf",
    "ttf": "font/ttf",
    "woff": "font/woff",
    "woff2": "font/woff2",

    # -------------------------------------------------------------------------
    # AUDIO / VIDEO
    # -------------------------------------------------------------------------
    "aac": "audio/aac",
    "mid": "audio/midi",
    "midi": "audio/midi",
    "mp3": "audio/mpeg",
    "mpeg": "audio/mpeg",
    "oga": "audio/ogg",
    "opus": "audio/opus",
    "wav": "audio/wav",
    "weba": "audio/webm",
    "3gp": "video/3gpp",
    "3g2": "video/3gpp2",
    "avi": "video/x-msvideo",
    "mp4": "video/mp4",
    "ogv": "video/ogg",
    "ts": "video/mp2t",
    "webm": "video/webm",

    # -------------------------------------------------------------------------
    # DOCUMENTS
    # -------------------------------------------------------------------------
    "abw": "application/x-abiword",
    "azw": "application/vnd.amazon.ebook",
    "doc": "application/msword",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "epub": "application/epub+zip",
    "odp": "application/vnd.oasis.opendocument.presentation",
    "ods": "application/vnd.oasis.opendocument.spreadsheet",
    "odt": "application/vnd.oasis.opendocument.text",
    "pdf": "application/pdf",
    "ppt": "application/vnd.ms-powerpoint",
    "pptx": "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    "rtf": "application/rtf",
    "vsd": "application/vnd.visio",
    "xls": "application/vnd.ms-excel",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",

    # -------------------------------------------------------------------------
    # ARCHIVES
    # -------------------------------------------------------------------------
    "7z": "application/x-7z-compressed",
    "arc": "application/x-freearc",
    "bz": "application/x-bzip",
    "bz2": "application/x-bzip2",
    "gz": "application/gzip",
    "jar": "application/java-archive",
    "rar": "application/vnd.rar",
    "tar": "application/x-tar",
    "zip": "application/zip",

    # -------------------------------------------------------------------------
    # OTHER
    # -------------------------------------------------------------------------
    "bin": "application/octet-stream",
    "csh": "application/x-csh",
    "ogx": "application/ogg",
    "php": "application/x-httpd-php",
    "sh": "application/x-sh",
    "wasm": "application/wasm",
}

# "I don't know what this is, treat it as bytes"
DEFAULT_MIME_TYPE = "application/octet-stream"


def mime_for(extension: str, default: Optional[str] = None) -> str:
    """
    Look up a MIME type by extension.

    Total function: unknown or empty extensions give the default.

    Examples:
        >>> mime_for("PNG")
        'image/png'
        >>> mime_for(".css")
        'text/css'
        >>> mime_for("")
        'application/octet-stream'
    """
    key = extension.lstrip(".").lower()
    return MIME_TYPES.get(key, default or DEFAULT_MIME_TYPE)


def get_mime_type(path: str) -> str:
    """
    MIME type for the final segment of a path.

    Only the last segment is consulted, so a dot in a directory name never
    leaks into the result:

        >>> get_mime_type("/srv/site.v2/README")
        'application/octet-stream'
        >>> get_mime_type("/srv/site/img/logo.svg")
        'image/svg+xml'
    """
    return mime_for(PurePosixPath(path.replace("\\", "/")).suffix)
