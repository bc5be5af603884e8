import io
import logging
from pathlib import Path
from typing import Iterable, Optional, Tuple

from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

THUMBNAIL_SIZE = (128, 128)


class ImageStore:
    """Content-addressed image blobs: ``<hash>.png`` plus ``<hash>.thumb.png``."""

    def __init__(self, base_dir: Path):
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def image_path(self, content_hash: str) -> Path:
        return self.base_dir / f"{content_hash}.png"

    def thumb_path(self, content_hash: str) -> Path:
        return self.base_dir / f"{content_hash}.thumb.png"

    def save_image(self, payload: bytes, content_hash: str) -> Tuple[Path, Optional[Path]]:
        """Write the blob and its thumbnail if missing.

        Raises ``OSError`` when the blob itself cannot be written. A failed
        thumbnail is logged and reported as ``None``.
        """
        self.base_dir.mkdir(parents=True, exist_ok=True)
        file_path = self.image_path(content_hash)
        if not file_path.exists():
            file_path.write_bytes(payload)
            logger.debug(f"Saved image blob {file_path.name}")

        thumb_path = self.thumb_path(content_hash)
        if thumb_path.exists():
            return file_path, thumb_path

        try:
            with Image.open(io.BytesIO(payload)) as image:
                image.thumbnail(THUMBNAIL_SIZE)
                image.save(thumb_path, format="PNG")
        except (UnidentifiedImageError, OSError, ValueError) as e:
            logger.warning(f"Failed to create thumbnail for {content_hash[:12]}: {e}")
            return file_path, None

        return file_path, thumb_path

    @staticmethod
    def hash_from_name(file_name: str) -> str:
        return file_name.split(".", 1)[0]

    def collect_garbage(self, referenced: Iterable[str]) -> int:
        """Delete every blob or thumbnail whose hash is not in ``referenced``."""
        keep = set(referenced)
        removed = 0
        try:
            entries = list(self.base_dir.iterdir())
        except OSError as e:
            logger.error(f"Cannot scan image directory {self.base_dir}: {e}")
            return 0

        for file_path in entries:
            if not file_path.is_file():
                continue
            if self.hash_from_name(file_path.name) in keep:
                continue
            try:
                file_path.unlink()
                removed += 1
            except OSError as e:
                logger.warning(f"Could not remove orphaned image {file_path}: {e}")

        if removed:
            logger.info(f"Removed {removed} orphaned image file(s)")
        return removed
