import logging
import os
from typing import Protocol

from starlette.concurrency import run_in_threadpool

from omnia.core.config import settings

logger = logging.getLogger(__name__)


class ObjectStorage(Protocol):
    async def upload(self, path: str, data: bytes) -> str:
        """Store data under path and return its public URL."""
        ...


class LocalObjectStorage:
    """Writes objects below a directory that the app serves as static files."""

    def __init__(self, root: str = settings.MEDIA_ROOT, base_url: str = settings.MEDIA_URL):
        self.root = os.path.abspath(root)
        self.base_url = base_url.rstrip("/")

    def _write(self, target: str, data: bytes):
        os.makedirs(os.path.dirname(target), exist_ok=True)
        # "x" refuses to overwrite an existing object
        with open(target, "xb") as fh:
            fh.write(data)

    async def upload(self, path: str, data: bytes) -> str:
        target = os.path.abspath(os.path.join(self.root, path))
        if not target.startswith(self.root + os.sep):
            raise ValueError(f"Invalid object path: {path}")
        await run_in_threadpool(self._write, target, data)
        logger.debug(f"Stored {len(data)} bytes at {target}")
        return f"{self.base_url}/{path}"
