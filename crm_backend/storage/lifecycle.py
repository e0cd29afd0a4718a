"""
Object Storage Lifecycle
========================

Moves request-scoped file buffers into the bucket and back, and keeps the
URL strings stored on documents resolvable.

Keys and URLs
-------------
An object is stored under ``<folder>/<epoch-ms>-<original name>``, with the
folder derived from the extension (see ``crm_backend.storage.folders``). Its
public URL is always ``https://<host>/<bucket>/<key>``. URLs are built
without percent-encoding, so every URL written so far stays valid.

Operations accept a reference in any of three forms: a public URL, a full
key, or a bare filename (the folder is derived again from the extension).

Ordering rules
--------------
- ``store`` writes, then makes public. A failed make-public is a failed
  store even though the bytes were written.
- ``replace`` stores first and removes second. A failed store never deletes
  the old object; a failed remove is logged and the new URL is returned.
- ``store_all`` stores several files or none: a failed store discards the
  ones already written.
- ``discard`` is ``remove`` for cleanup cascades: failures are logged only.

Known hazard: the bucket has no locking. Two concurrent ``replace`` calls on
the same slot can interleave; the last store wins the URL field and an
earlier remove may delete the object that field still points to.
"""

import logging
import os
import time
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, List, Optional, Tuple
from urllib.parse import urlsplit

from crm_backend.api.errors import ObjectNotFoundError, StorageError
from crm_backend.database.config.config import settings
from crm_backend.database.entities.columns import serialize_datetime
from crm_backend.storage.folders import OTHERS, extension_of, folder_for, is_allowed

logger = logging.getLogger(__name__)


@dataclass
class UploadedFile:
    """An uploaded file held in memory for the duration of one request."""

    filename: str
    content_type: str
    data: Optional[bytes]

    @property
    def size(self) -> int:
        return len(self.data) if self.data is not None else 0

    @classmethod
    def from_upload(cls, upload) -> "UploadedFile":
        """Read a FastAPI ``UploadFile`` into memory."""
        upload.file.seek(0)
        return cls(
            filename=os.path.basename(upload.filename or ""),
            content_type=upload.content_type or "application/octet-stream",
            data=upload.file.read(),
        )

    def errors(self, max_bytes: Optional[int] = None) -> List[str]:
        """Upload filter: allowed extension and size limit."""
        max_bytes = max_bytes if max_bytes is not None else settings.MAX_UPLOAD_SIZE_MB * 1024 * 1024
        if not self.filename:
            return ["A file is required"]
        errors = []
        if not is_allowed(self.filename):
            errors.append(f"File type {extension_of(self.filename) or 'without extension'} is not supported")
        if self.size > max_bytes:
            errors.append(f"File {self.filename} exceeds the {max_bytes // (1024 * 1024)}MB upload limit")
        return errors


class ObjectStorage:
    """
    Storage lifecycle on top of a bucket adapter.

    Parameters
    ----------
    bucket :
        Object with ``put``, ``make_public``, ``delete``, ``exists``, ``list``
        and ``open_read_stream`` (see ``S3Bucket``).
    bucket_name, host : str | None
        Parts of the public URL; read from the settings when omitted.
    clock : callable
        Returns seconds since the epoch; injected for deterministic keys.
    """

    def __init__(
        self,
        bucket,
        bucket_name: Optional[str] = None,
        host: Optional[str] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.bucket = bucket
        self.bucket_name = bucket_name or settings.BUCKET_NAME
        self.host = host or settings.BUCKET_HOST
        self.clock = clock

    @property
    def url_prefix(self) -> str:
        return f"https://{self.host}/{self.bucket_name}/"

    def public_url(self, key: str) -> str:
        return f"{self.url_prefix}{key}"

    def key_for(self, ref: str) -> str:
        """Normalize a public URL, full key or bare filename to a key."""
        ref = ref.strip()
        if ref.startswith(self.url_prefix):
            return ref[len(self.url_prefix):]
        if ref.startswith(("http://", "https://")):
            path = urlsplit(ref).path.lstrip("/")
            marker = f"{self.bucket_name}/"
            return path[len(marker):] if path.startswith(marker) else path
        if "/" in ref:
            return ref.lstrip("/")
        return f"{folder_for(ref)}/{ref}"

    def new_key(self, filename: str) -> str:
        return f"{folder_for(filename)}/{int(self.clock() * 1000)}-{filename}"

    def store(self, file: Optional[UploadedFile]) -> str:
        """
        Write ``file`` to the bucket, make it public and return its URL.

        Raises
        ------
        StorageError
            Missing buffer, failed write or failed make-public.
        """
        if file is None or file.data is None:
            raise StorageError("No file buffer to upload")
        key = self.new_key(file.filename)
        try:
            self.bucket.put(key, file.data, file.content_type)
        except Exception as e:
            logger.error(f"Upload of {key} failed: {e}")
            raise StorageError(f"Failed to upload {file.filename}") from e
        try:
            self.bucket.make_public(key)
        except Exception as e:
            logger.error(f"Making {key} public failed: {e}")
            self.discard(key)
            raise StorageError(f"Failed to upload {file.filename}") from e
        logger.info(f"Stored {key} ({file.size} bytes)")
        return self.public_url(key)

    def store_all(self, files: Iterable[UploadedFile]) -> List[str]:
        """Store every file in order, or none of them."""
        urls = []
        try:
            for file in files:
                urls.append(self.store(file))
        except Exception:
            for url in urls:
                self.discard(url)
            raise
        return urls

    def replace(self, old: Optional[str], file: UploadedFile) -> str:
        """Store ``file`` then remove ``old``; without ``old`` this is a plain store."""
        url = self.store(file)
        if old:
            try:
                self.remove(old)
            except Exception as e:
                logger.warning(f"Replaced {old} with {url} but the old object was not removed: {e}")
        return url

    def exists(self, ref: str) -> bool:
        key = self.key_for(ref)
        try:
            return self.bucket.exists(key)
        except Exception as e:
            logger.error(f"Existence check of {key} failed: {e}")
            raise StorageError(f"Failed to look up {key}") from e

    def remove(self, ref: str) -> str:
        """
        Delete the object behind ``ref``.

        Returns
        -------
        str
            The deleted key.

        Raises
        ------
        ObjectNotFoundError
            The object does not exist.
        StorageError
            The delete failed.
        """
        key = self.key_for(ref)
        if not self.exists(key):
            raise ObjectNotFoundError(f"File {key} not found")
        try:
            self.bucket.delete(key)
        except Exception as e:
            logger.error(f"Delete of {key} failed: {e}")
            raise StorageError(f"Failed to delete {key}") from e
        logger.info(f"Removed {key}")
        return key

    def discard(self, ref: Optional[str]) -> bool:
        """Best-effort ``remove``; returns whether the object was deleted."""
        if not ref:
            return False
        try:
            self.remove(ref)
            return True
        except Exception as e:
            logger.warning(f"Cleanup of {ref} skipped: {e}")
            return False

    def fetch(self, ref: str) -> Tuple[str, Iterator[bytes]]:
        """
        Open the object behind ``ref`` for download.

        The object's existence is checked now; the returned iterator only
        touches the bucket once the response starts consuming it, and read
        errors surface there as ``StorageError``.

        Returns
        -------
        tuple[str, Iterator[bytes]]
            Download filename and the byte stream.
        """
        key = self.key_for(ref)
        if not self.exists(key):
            raise ObjectNotFoundError(f"File {key} not found")
        return key.rsplit("/", 1)[-1], self._stream(key)

    def _stream(self, key: str) -> Iterator[bytes]:
        try:
            yield from self.bucket.open_read_stream(key)
        except Exception as e:
            logger.error(f"Stream of {key} failed: {e}")
            raise StorageError(f"Failed to read {key}") from e

    def listing(self) -> List[dict]:
        try:
            return self.bucket.list()
        except Exception as e:
            logger.error(f"Listing bucket {self.bucket_name} failed: {e}")
            raise StorageError("Failed to list stored files") from e

    def usage_report(self, objects: Iterable[dict]) -> dict:
        """
        Aggregate a bucket listing per top-level folder.

        Parameters
        ----------
        objects : iterable of dict
            ``{"key", "size", "created_at"}`` entries as returned by the bucket.

        Returns
        -------
        dict
            ``{folder: {"files": [{"file", "size", "created_at"}], "size": total}}``,
            folders and files ordered by name so equal listings give equal reports.
        """
        report = {}
        for obj in sorted(objects, key=lambda item: item["key"]):
            key = obj["key"]
            folder = key.split("/", 1)[0] if "/" in key else OTHERS
            entry = report.setdefault(folder, {"files": [], "size": 0})
            created_at = obj.get("created_at")
            entry["files"].append(
                {
                    "file": self.public_url(key),
                    "size": obj["size"],
                    "created_at": serialize_datetime(created_at) if hasattr(created_at, "isoformat") else created_at,
                }
            )
            entry["size"] += obj["size"]
        return {folder: report[folder] for folder in sorted(report)}
