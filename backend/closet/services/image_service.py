import asyncio
import base64
import binascii
import logging
import mimetypes
import re
import time
from io import BytesIO
from pathlib import Path
from typing import Optional

from PIL import Image, UnidentifiedImageError
from pydantic import BaseModel

from closet.config import get_settings
from closet.errors import PayloadTooLarge, StorageUnavailable, UnsupportedMediaType

logger = logging.getLogger(__name__)

ALLOWED_MIME_TYPES = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
    "image/gif": ".gif",
}

UPLOAD_URL_PREFIX = "/uploads/"
FILENAME_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+\.(jpg|jpeg|png|webp|gif)$")
DATA_URL_PATTERN = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,(?P<data>.*)$", re.DOTALL)


class ImageUpload(BaseModel):
    data: bytes
    content_type: str

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def mime_type(self) -> str:
        return self.content_type.split(";", 1)[0].strip().lower()


class ImageService:
    """Turns uploaded bytes into an ``image_url`` reference and back.

    In ``filesystem`` mode the bytes are written under the storage root and
    the reference is ``/uploads/<filename>``; in ``inline`` mode the reference
    is a base64 data URL. Both kinds are accepted wherever a reference is read.
    """

    def __init__(
        self,
        storage_path: Optional[str] = None,
        mode: Optional[str] = None,
        max_size: Optional[int] = None,
        quality: Optional[int] = None,
    ):
        settings = get_settings()
        self.storage_path = Path(storage_path or settings.storage_path)
        self.mode = mode or settings.storage_mode
        self.max_size = max_size if max_size is not None else settings.max_upload_size_bytes
        self.quality = quality or settings.image_quality

        if self.mode == "filesystem":
            try:
                self.storage_path.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise StorageUnavailable(f"Cannot create upload directory: {e}") from e

    def validate(self, upload: ImageUpload) -> None:
        """Reject unsupported types and oversized files before anything is written."""
        if upload.mime_type not in ALLOWED_MIME_TYPES:
            raise UnsupportedMediaType(upload.mime_type)
        if upload.size > self.max_size:
            raise PayloadTooLarge(upload.size, self.max_size)

    def _generate_filename(self, owner_id: str, extension: str) -> str:
        """Owner id plus a millisecond timestamp, with a counter on collision."""
        stamp = int(time.time() * 1000)
        filename = f"{owner_id}-{stamp}{extension}"
        counter = 1
        while (self.storage_path / filename).exists():
            filename = f"{owner_id}-{stamp}-{counter}{extension}"
            counter += 1
        return filename

    async def store(self, owner_id: str, upload: ImageUpload) -> str:
        self.validate(upload)

        if self.mode == "inline":
            return self.to_data_url(upload.data, upload.mime_type)

        extension = ALLOWED_MIME_TYPES[upload.mime_type]
        filename = self._generate_filename(owner_id, extension)
        file_path = self.storage_path / filename
        try:
            await asyncio.to_thread(file_path.write_bytes, upload.data)
        except OSError as e:
            raise StorageUnavailable(f"Could not write image: {e}") from e

        logger.info("Stored image for %s at %s", owner_id, filename)
        return f"{UPLOAD_URL_PREFIX}{filename}"

    @staticmethod
    def to_data_url(data: bytes, mime_type: str) -> str:
        encoded = base64.b64encode(data).decode("ascii")
        return f"data:{mime_type};base64,{encoded}"

    @staticmethod
    def is_data_url(reference: str) -> bool:
        return reference.startswith("data:")

    @staticmethod
    def is_managed(reference: str) -> bool:
        return reference.startswith(UPLOAD_URL_PREFIX)

    def get_image_path(self, reference: str) -> Path | None:
        """Filesystem path of a managed upload, or None for other references."""
        if not reference.startswith(UPLOAD_URL_PREFIX):
            return None
        filename = reference[len(UPLOAD_URL_PREFIX) :]
        if not FILENAME_PATTERN.match(filename):
            return None
        path = self.storage_path / filename
        if not path.resolve().is_relative_to(self.storage_path.resolve()):
            return None
        return path

    async def load_bytes(self, reference: str) -> tuple[bytes, str]:
        """Read the bytes behind a reference; returns ``(data, mime_type)``."""
        if self.is_data_url(reference):
            match = DATA_URL_PATTERN.match(reference)
            if not match:
                raise ValueError("Malformed data URL")
            try:
                data = base64.b64decode(match.group("data"), validate=True)
            except binascii.Error as e:
                raise ValueError(f"Malformed data URL payload: {e}") from e
            return data, match.group("mime").lower()

        path = self.get_image_path(reference)
        if path is None:
            raise ValueError(f"Not a managed image reference: {reference[:100]}")
        data = await asyncio.to_thread(path.read_bytes)
        mime_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        return data, mime_type

    def to_jpeg(self, data: bytes) -> bytes:
        """Re-encode as JPEG, or return ``data`` unchanged if that fails."""
        try:
            with Image.open(BytesIO(data)) as image:
                if image.format == "JPEG":
                    return data

                # Flatten transparency onto white
                if image.mode in ("RGBA", "P", "LA"):
                    if image.mode == "P":
                        image = image.convert("RGBA")
                    background = Image.new("RGB", image.size, (255, 255, 255))
                    background.paste(image, mask=image.split()[-1])
                    image = background
                elif image.mode != "RGB":
                    image = image.convert("RGB")

                output = BytesIO()
                image.save(output, format="JPEG", quality=self.quality)
                return output.getvalue()
        except (UnidentifiedImageError, OSError, ValueError) as e:
            logger.warning("JPEG conversion failed, passing original bytes through: %s", e)
            return data

    async def to_jpeg_data_url(self, reference: str) -> str:
        data, _ = await self.load_bytes(reference)
        jpeg = await asyncio.to_thread(self.to_jpeg, data)
        return self.to_data_url(jpeg, "image/jpeg")

    def owns(self, owner_id: str, reference: str | None) -> bool:
        """Whether ``reference`` is a managed upload stored for ``owner_id``."""
        path = self.get_image_path(reference) if reference else None
        return path is not None and path.name.startswith(f"{owner_id}-")

    def discard(self, owner_id: str, reference: str | None) -> None:
        """Delete an upload stored for ``owner_id``; any other reference is left alone."""
        if not self.owns(owner_id, reference):
            return
        path = self.get_image_path(reference)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Could not delete image %s: %s", path, e)
