from decouple import Csv, config
from pathlib import Path

# Input paths
TIMELINE_PATH = Path(config('TIMELINE_PATH', default='Timeline.json'))
REVIEWS_PATHS = [
    Path(p)
    for p in config(
        'REVIEWS_PATHS',
        default='takeout/Maps (your places)/Reviews.json,Takeout/Maps (your places)/Reviews.json',
        cast=Csv(),
    )
]
PHOTO_DIRS = [
    Path(p)
    for p in config(
        'PHOTO_DIRS',
        default='Takeout/Maps/Photos and videos,takeout/Maps/Photos and videos',
        cast=Csv(),
    )
]

# Output paths
OUTPUT_DIR = Path(config('OUTPUT_DIR', default='data'))
STATS_FILE = config('STATS_FILE', default='maps-stats.json')
HEATMAP_FILE = config('HEATMAP_FILE', default='maps-heatmap.json')
THUMBNAIL_DIR = Path(config('THUMBNAIL_DIR', default='public/photos/heatmap'))
THUMBNAIL_URL_PREFIX = config('THUMBNAIL_URL_PREFIX', default='/photos/heatmap')

# Takeout zip layout -> local layout (relative to the extraction root)
TAKEOUT_FILE_MAPPINGS = {
    "Maps (your places)/Reviews.json": "takeout/Maps (your places)/Reviews.json",
}
TAKEOUT_DIR_MAPPINGS = {
    "Maps/Photos and videos": "takeout/Maps/Photos and videos",
}

# Thumbnails
THUMBNAIL_SIZE = tuple(config('THUMBNAIL_SIZE', default='400,300', cast=Csv(int)))
THUMBNAIL_QUALITY = config('THUMBNAIL_QUALITY', default=80, cast=int)

# Overlay constants
TOP_PHOTOS_LIMIT = config('TOP_PHOTOS_LIMIT', default=500, cast=int)
HEATMAP_GRID_DECIMALS = config('HEATMAP_GRID_DECIMALS', default=1, cast=int)  # ~11 km cells
OVERLAY_COORD_DECIMALS = config('OVERLAY_COORD_DECIMALS', default=4, cast=int)
REVIEW_TEXT_LIMIT = config('REVIEW_TEXT_LIMIT', default=200, cast=int)

# Aggregation
AGGREGATION_WORKERS = config('AGGREGATION_WORKERS', default=1, cast=int)
SHARD_SIZE = config('SHARD_SIZE', default=50000, cast=int)
PROGRESS_EVERY = config('PROGRESS_EVERY', default=100000, cast=int)

# Optional narrative insights collaborator, "package.module:function"
INSIGHTS_GENERATOR = config('INSIGHTS_GENERATOR', default='')

# Validation constants
MIN_VALID_LATITUDE = -90.0
MAX_VALID_LATITUDE = 90.0
MIN_VALID_LONGITUDE = -180.0
MAX_VALID_LONGITUDE = 180.0
