"""
Local directory holding uploaded document bytes.

Files are named ``invoice-<timestamp>-<random><ext>`` so uploads with the
same original name never collide. Records keep the returned path.
"""

import secrets
import time
from pathlib import Path
from loguru import logger


class LocalFileStore:
    def __init__(self, upload_dir: str = "uploads"):
        self.upload_dir = Path(upload_dir).resolve()
        self.upload_dir.mkdir(parents=True, exist_ok=True)

    def save(self, content: bytes, original_name: str) -> str:
        """Write bytes to the upload directory and return the stored path."""
        ext = Path(original_name).suffix.lower()
        unique_suffix = f"{int(time.time() * 1000)}-{secrets.randbelow(10**9)}"
        path = self.upload_dir / f"invoice-{unique_suffix}{ext}"
        path.write_bytes(content)
        logger.debug("Stored upload", path=str(path), size_bytes=len(content))
        return str(path)

    def read(self, path: str) -> bytes:
        return Path(path).read_bytes()

    def delete(self, path: str) -> None:
        """Remove stored bytes. Raises FileNotFoundError if already gone."""
        Path(path).unlink()
