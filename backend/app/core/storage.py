"""
Blob storage for reservation evidence files.

Files live under a root directory and are served by the static mount in
app.main, so the public URL of a blob is derived from its path without any
signing or expiry.
"""
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path, PurePosixPath
from typing import Iterable, Optional

logger = logging.getLogger(__name__)


class BlobStore(ABC):
    """Minimal blob store contract used by the reservation workflow."""

    @abstractmethod
    def upload(self, path: str, data: bytes, content_type: Optional[str] = None) -> None: ...

    @abstractmethod
    def get_public_url(self, path: str) -> str: ...

    @abstractmethod
    def path_from_url(self, url: str) -> Optional[str]: ...

    @abstractmethod
    def remove(self, paths: Iterable[str]) -> None: ...


class LocalBlobStore(BlobStore):
    """Blob store backed by a local directory."""

    def __init__(self, root_dir: str, public_base_url: str, url_path: str = "/static"):
        self.root = Path(root_dir)
        self._url_prefix = public_base_url.rstrip("/") + "/" + url_path.strip("/") + "/"

    def _resolve(self, path: str) -> Path:
        parts = PurePosixPath(path).parts
        if not parts or PurePosixPath(path).is_absolute() or ".." in parts:
            raise ValueError(f"Invalid blob path: {path}")
        return self.root.joinpath(*parts)

    def upload(self, path: str, data: bytes, content_type: Optional[str] = None) -> None:
        """Write bytes at path, refusing to overwrite an existing blob."""
        target = self._resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, "xb") as buffer:
            buffer.write(data)
        logger.debug(f"Stored blob {path} ({len(data)} bytes, {content_type})")

    def get_public_url(self, path: str) -> str:
        self._resolve(path)
        return self._url_prefix + path

    def path_from_url(self, url: str) -> Optional[str]:
        """Inverse of get_public_url; None for URLs this store did not issue."""
        if not url.startswith(self._url_prefix):
            return None
        return url[len(self._url_prefix):]

    def remove(self, paths: Iterable[str]) -> None:
        """Delete blobs, skipping ones that are already gone."""
        for path in paths:
            target = self._resolve(path)
            if os.path.exists(target):
                os.remove(target)
                logger.info(f"Removed blob {path}")
