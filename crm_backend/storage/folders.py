"""
Extension routing for stored objects.

Every object lives under a top-level folder derived from its file extension.
Matching is case-insensitive; an unknown extension goes to ``others``.
"""

import os

OTHERS = "others"

EXTENSION_FOLDERS = {
    "images": (".jpg", ".jpeg", ".png"),
    "videos": (".mp4", ".mkv", ".flv", ".avi", ".mov"),
    "audio": (".mp3", ".m4a"),
    "documents": (".pdf", ".doc", ".docx", ".txt", ".xls", ".xlsx", ".ppt", ".pptx"),
    "designs": (".ai",),
    "code": (".py", ".js", ".ts", ".json", ".jsx", ".java", ".c", ".html", ".htm", ".css"),
}

_FOLDER_BY_EXTENSION = {ext: folder for folder, extensions in EXTENSION_FOLDERS.items() for ext in extensions}

# .psd is accepted but has no folder of its own.
ALLOWED_EXTENSIONS = frozenset(
    (
        ".jpg", ".jpeg", ".png", ".pdf", ".txt", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx",
        ".mp4", ".mkv", ".flv", ".avi", ".mov", ".mp3", ".psd", ".ai",
        ".py", ".js", ".ts", ".json", ".jsx", ".java", ".c", ".html", ".htm", ".css",
    )
)


def extension_of(filename: str) -> str:
    return os.path.splitext(filename)[1].lower()


def folder_for(filename: str) -> str:
    return _FOLDER_BY_EXTENSION.get(extension_of(filename), OTHERS)


def is_allowed(filename: str) -> bool:
    return extension_of(filename) in ALLOWED_EXTENSIONS
