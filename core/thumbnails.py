import logging
from config import THUMBNAIL_QUALITY, THUMBNAIL_SIZE
from core.photos import PhotoOverlay
from pathlib import Path
from PIL import Image, ImageOps, UnidentifiedImageError

logger = logging.getLogger(__name__)


class ThumbnailWriter:
    """Resized, center-cropped JPEG copies of the top photos"""

    def __init__(
        self,
        output_dir: Path,
        size: tuple[int, int] = THUMBNAIL_SIZE,
        quality: int = THUMBNAIL_QUALITY,
    ):
        self.output_dir = output_dir
        self.size = size
        self.quality = quality

    def write_thumbnail(self, source: Path, destination: Path) -> bool:
        try:
            with Image.open(source) as image:
                thumbnail = ImageOps.fit(image, self.size)
                # JPEG has no alpha or palette modes
                if thumbnail.mode != 'RGB':
                    thumbnail = thumbnail.convert('RGB')
                thumbnail.save(destination, format='JPEG', quality=self.quality)
        except (OSError, UnidentifiedImageError, ValueError) as e:
            logger.debug(f"Skipping unreadable image {source.name}: {e}")
            return False
        return True

    def write_all(self, photos: list[PhotoOverlay], photos_dir: Path) -> int:
        """Write thumbnails for every photo whose image file exists; returns the number written"""
        if not photos:
            return 0

        self.output_dir.mkdir(parents=True, exist_ok=True)
        copied = 0
        for photo in photos:
            name = Path(photo.original_filename).name
            if name in ('', '.', '..'):
                logger.warning(f"Skipping photo with unusable file name: {photo.original_filename!r}")
                continue
            source = photos_dir / name
            if not source.is_file():
                continue
            if self.write_thumbnail(source, self.output_dir / name):
                copied += 1

        logger.info(f"Copied {copied} thumbnails to {self.output_dir}")
        return copied
