import logging
import shutil
import zipfile
from config import TAKEOUT_DIR_MAPPINGS, TAKEOUT_FILE_MAPPINGS
from pathlib import Path, PurePosixPath

logger = logging.getLogger(__name__)

TAKEOUT_ROOT = "Takeout"


def find_existing(candidates: list[Path]) -> Path | None:
    """First candidate path that exists, or None"""
    for candidate in candidates:
        if candidate.exists():
            return candidate
    return None


class TakeoutExtractor:
    """Copy the reviews file and photo sidecars out of a Google Takeout zip"""

    def __init__(self, output_dir: Path = Path(".")):
        self.output_dir = output_dir

    def find_takeout_zip(self, search_dir: Path = Path(".")) -> Path | None:
        """Find takeout zip file matching the expected pattern"""
        pattern = "takeout-*.zip"
        zip_files = list(search_dir.glob(pattern))

        if not zip_files:
            logger.error(f"No takeout zip files found matching pattern '{pattern}' in {search_dir}")
            return None

        latest = max(zip_files, key=lambda f: f.stat().st_mtime)
        if len(zip_files) > 1:
            logger.warning(f"Multiple takeout zip files found: {[f.name for f in zip_files]}")
            logger.info(f"Using most recent: {latest.name}")

        return latest

    def _member_destination(self, member: str) -> Path | None:
        """Local path for a zip member, or None when it is not wanted"""
        parts = PurePosixPath(member).parts
        if len(parts) < 2 or parts[0] != TAKEOUT_ROOT or '..' in parts:
            return None
        relative = PurePosixPath(*parts[1:])

        for source, dest in TAKEOUT_FILE_MAPPINGS.items():
            if relative == PurePosixPath(source):
                return self.output_dir / dest

        for source, dest in TAKEOUT_DIR_MAPPINGS.items():
            source_dir = PurePosixPath(source)
            # Only direct children; album subfolders are not read
            if relative.parent == source_dir:
                return self.output_dir / dest / relative.name

        return None

    def extract_takeout(self, zip_path: Path | None = None, cleanup: bool = False) -> bool:
        """
        Extract the map inputs from a Google Takeout zip file

        Args:
            zip_path: Path to takeout zip file (auto-detected if None)
            cleanup: Whether to delete the original zip file after extraction

        Returns:
            bool: True if at least one wanted file was extracted, False otherwise
        """
        if zip_path is None:
            zip_path = self.find_takeout_zip()
            if zip_path is None:
                return False

        if not zip_path.exists():
            logger.error(f"Zip file not found: {zip_path}")
            return False

        logger.info(f"Extracting takeout from: {zip_path}")

        files_extracted = 0
        try:
            with zipfile.ZipFile(zip_path, 'r') as zip_ref:
                for info in zip_ref.infolist():
                    if info.is_dir():
                        continue
                    dest_file = self._member_destination(info.filename)
                    if dest_file is None:
                        continue
                    dest_file.parent.mkdir(parents=True, exist_ok=True)
                    with zip_ref.open(info) as source, open(dest_file, 'wb') as target:
                        shutil.copyfileobj(source, target)
                    logger.debug(f"Extracted: {info.filename} -> {dest_file} ({info.file_size} bytes)")
                    files_extracted += 1
        except (OSError, zipfile.BadZipFile) as e:
            logger.error(f"Error extracting takeout: {e}")
            return False

        if files_extracted == 0:
            logger.error("No reviews or photos found in takeout")
            return False

        logger.info(f"Successfully extracted {files_extracted} files to {self.output_dir}")

        if cleanup:
            zip_path.unlink()
            logger.info(f"Deleted original zip file: {zip_path}")

        return True
