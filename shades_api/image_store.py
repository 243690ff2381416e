# shades_api/image_store.py
import logging
import os
import random
import re
import time
from pathlib import Path
from typing import BinaryIO, Iterable, List, Optional, Protocol, Sequence, Union

from .config import MAX_FILE_SIZE, MAX_UPLOAD_FILES
from .errors import NotFoundError, ValidationError

logger = logging.getLogger("shades_api.images")

# loose match on the declared media type, exact match on the extension
_ALLOWED_TYPES = re.compile(r"jpeg|jpg|png|webp")
VALID_EXTS = [".jpg", ".jpeg", ".png", ".webp"]
_CHUNK = 1024 * 1024


class Upload(Protocol):
    """What we need from an uploaded file (starlette's UploadFile fits)."""
    filename: Optional[str]
    content_type: Optional[str]
    file: BinaryIO


def _extension(filename: str) -> str:
    return os.path.splitext(filename)[1]


def is_allowed(upload: Upload) -> bool:
    ext = _extension(upload.filename or "").lower()
    return bool(_ALLOWED_TYPES.search(upload.content_type or "")) and ext in VALID_EXTS


class ImageStore:
    """Flat directory of uploaded product images."""

    def __init__(
        self,
        directory: Union[str, Path],
        max_files: int = MAX_UPLOAD_FILES,
        max_file_size: int = MAX_FILE_SIZE,
    ):
        self.directory = Path(directory)
        self.max_files = max_files
        self.max_file_size = max_file_size

    def _ensure_dir(self) -> Path:
        self.directory.mkdir(parents=True, exist_ok=True)
        return self.directory

    @staticmethod
    def new_name(ext: str) -> str:
        return f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}{ext}"

    def _open_unique(self, ext: str):
        directory = self._ensure_dir()
        while True:
            name = self.new_name(ext)
            try:
                return name, open(directory / name, "xb")
            except FileExistsError:
                continue

    def _write(self, upload: Upload) -> str:
        name, out = self._open_unique(_extension(upload.filename or ""))
        written = 0
        try:
            with out:
                while True:
                    chunk = upload.file.read(_CHUNK)
                    if not chunk:
                        break
                    written += len(chunk)
                    if written > self.max_file_size:
                        raise ValidationError(
                            f"File too large: {upload.filename} (max {self.max_file_size // (1024 * 1024)} MB)"
                        )
                    out.write(chunk)
        except Exception:
            self.remove(name)
            raise
        return name

    def store(self, uploads: Sequence[Upload]) -> List[str]:
        """
        Validate and persist uploads, returning the assigned filenames in input order.
        Either every file is kept or none is.
        """
        if len(uploads) > self.max_files:
            raise ValidationError(f"Too many files (max {self.max_files})")
        for upload in uploads:
            if not is_allowed(upload):
                raise ValidationError("Only JPG, PNG, WebP allowed")

        stored: List[str] = []
        try:
            for upload in uploads:
                stored.append(self._write(upload))
        except Exception:
            self.discard(stored)
            raise
        logger.info("Stored %d image(s): %s", len(stored), ", ".join(stored))
        return stored

    def path_for(self, filename: str) -> Path:
        """Resolve a stored filename for exists/remove; anything outside the store directory is not found."""
        if not filename or filename in (".", "..") or filename != os.path.basename(filename) or "\\" in filename:
            raise NotFoundError("Not found")
        root = self.directory.resolve()
        path = (root / filename).resolve()
        if path.parent != root or not path.is_file():
            raise NotFoundError("Not found")
        return path

    def exists(self, filename: str) -> bool:
        try:
            self.path_for(filename)
        except NotFoundError:
            return False
        return True

    def remove(self, filename: str) -> bool:
        """Best-effort delete; never raises."""
        try:
            path = self.path_for(filename)
        except NotFoundError:
            logger.warning("Image '%s' not found in %s, nothing to remove", filename, self.directory)
            return False
        try:
            path.unlink()
        except OSError as e:
            logger.warning("Could not remove image '%s': %s", filename, e)
            return False
        return True

    def discard(self, filenames: Iterable[str]) -> None:
        for name in filenames:
            self.remove(name)
