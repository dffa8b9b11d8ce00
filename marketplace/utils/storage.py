import logging
import os
import random
import time
from typing import BinaryIO, Optional

from marketplace.services.exceptions import ValidationError

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".jpeg", ".jpg", ".png", ".gif"}
ALLOWED_MIME_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/gif"}
URL_PREFIX = "/uploads"

_CHUNK_SIZE = 64 * 1024


class ImageStorage:
    """
    Stores uploaded product images on local disk.

    Files are named ``<epoch-ms>-<random><ext>`` and referenced by
    ``/uploads/<name>``; the API mounts the directory at that prefix.
    """

    def __init__(self, directory: str, max_size: int):
        self.directory = directory
        self.max_size = max_size

    def ensure_directory(self) -> None:
        os.makedirs(self.directory, exist_ok=True)

    def check(self, filename: Optional[str], content_type: Optional[str]) -> str:
        """
        Validate the upload's name and MIME type.

        Returns:
            The lower-cased file extension

        Raises:
            ValidationError: If the file is not an allowed image type
        """
        ext = os.path.splitext(filename or "")[1].lower()
        if ext not in ALLOWED_EXTENSIONS or (content_type or "").lower() not in ALLOWED_MIME_TYPES:
            raise ValidationError({"image": "Only image files are allowed!"})
        return ext

    def save(self, fileobj: BinaryIO, filename: Optional[str], content_type: Optional[str]) -> str:
        """
        Write an uploaded image to disk, enforcing type and size limits.

        Args:
            fileobj: Readable binary stream of the upload
            filename: Client-supplied file name (only its extension is kept)
            content_type: Client-supplied MIME type

        Returns:
            Image reference such as ``/uploads/1700000000000-123456789.png``
        """
        ext = self.check(filename, content_type)
        self.ensure_directory()

        name = f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}{ext}"
        path = os.path.join(self.directory, name)

        written = 0
        with open(path, "wb") as out:
            while True:
                chunk = fileobj.read(_CHUNK_SIZE)
                if not chunk:
                    break
                written += len(chunk)
                if written > self.max_size:
                    break
                out.write(chunk)

        if written > self.max_size:
            os.remove(path)
            limit_mb = self.max_size // (1024 * 1024)
            raise ValidationError({"image": f"File too large (max {limit_mb}MB)"})

        logger.info(f"Stored image {name} ({written} bytes)")
        return f"{URL_PREFIX}/{name}"

    def discard(self, image_ref: Optional[str]) -> None:
        """Remove a previously stored image. Unknown or external references are ignored."""
        if not image_ref or not image_ref.startswith(f"{URL_PREFIX}/"):
            return
        path = os.path.join(self.directory, os.path.basename(image_ref))
        try:
            os.remove(path)
        except FileNotFoundError:
            logger.warning(f"Image {image_ref} already missing from storage")
