"""
Frame asset module for the FrameCraft storefront.

This module handles:
- Detecting photo orientation from pixel dimensions
- Matching a photo to the closest supported frame aspect ratio
- Building deterministic frame asset paths from a customer's selection
- Loading frame assets in the background with a cache and a default fallback
"""

import re
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Optional, Sequence
from PIL import Image, UnidentifiedImageError
from loguru import logger

from .errors import AssetLoadFailure, FallbackLoadFailure, InvalidDimensionsError


@dataclass(frozen=True)
class PhotoDimensions:
    """Raw pixel size of an uploaded photo"""
    width: int
    height: int

    def __post_init__(self):
        for value in (self.width, self.height):
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise InvalidDimensionsError(self.width, self.height)


@dataclass(frozen=True)
class PhotoOrientation:
    """Orientation of a photo; aspect_ratio is always normalized to >= 1"""
    type: str  # landscape, portrait, square
    needs_rotation: bool
    aspect_ratio: float


@dataclass(frozen=True)
class AspectRatio:
    name: str
    value: float


@dataclass(frozen=True)
class FrameSelection:
    """Colour, material and thickness picked by the customer"""
    color_name: str
    material_type: str
    thickness: str


@dataclass(frozen=True)
class FrameAssetConfig:
    """Everything needed to locate one physical frame asset"""
    color_name: str
    material_type: str
    thickness: str
    aspect_ratio: str


@dataclass(frozen=True)
class OptimalFrameConfig(FrameAssetConfig):
    needs_rotation: bool = False

    def asset_config(self) -> FrameAssetConfig:
        return FrameAssetConfig(
            color_name=self.color_name,
            material_type=self.material_type,
            thickness=self.thickness,
            aspect_ratio=self.aspect_ratio,
        )


# Order matters: the first entry wins when two ratios are equally close.
ASPECT_RATIOS = (
    AspectRatio("3x2", 1.5),
    AspectRatio("4x3", 1.333),
    AspectRatio("5x4", 1.25),
    AspectRatio("1x1", 1.0),
    AspectRatio("7x5", 1.4),
    AspectRatio("16x9", 1.778),
    AspectRatio("2x1", 2.0),
    AspectRatio("3x1", 3.0),
)

SQUARE_RATIO = "1x1"
DEFAULT_FALLBACK_ASSET = "black_wood_thin_4x3.png"

_WHITESPACE_RE = re.compile(r'\s+')


def detect_photo_orientation(dimensions: PhotoDimensions) -> PhotoOrientation:
    """Detect photo orientation and its landscape-equivalent aspect ratio"""
    aspect_ratio = dimensions.width / dimensions.height

    if aspect_ratio == 1:
        return PhotoOrientation(type="square", needs_rotation=False, aspect_ratio=1.0)
    if aspect_ratio > 1:
        return PhotoOrientation(type="landscape", needs_rotation=False, aspect_ratio=aspect_ratio)

    # Portrait frames are the landscape templates turned on their side
    return PhotoOrientation(
        type="portrait",
        needs_rotation=True,
        aspect_ratio=dimensions.height / dimensions.width,
    )


def find_closest_aspect_ratio(photo_aspect_ratio: float,
                              ratios: Sequence[AspectRatio] = ASPECT_RATIOS) -> str:
    """
    Find the closest matching aspect ratio name from the catalog

    Ties go to whichever ratio appears first in the catalog.
    """
    closest = ratios[0]
    smallest_difference = abs(photo_aspect_ratio - closest.value)

    for ratio in ratios:
        difference = abs(photo_aspect_ratio - ratio.value)
        if difference < smallest_difference:
            smallest_difference = difference
            closest = ratio

    return closest.name


def normalize_asset_token(value: str) -> str:
    """Lowercase a name and collapse whitespace runs into underscores"""
    return _WHITESPACE_RE.sub('_', value.lower())


def frame_asset_filename(config: FrameAssetConfig) -> str:
    color = normalize_asset_token(config.color_name)
    material = normalize_asset_token(config.material_type)
    thickness = normalize_asset_token(config.thickness)
    return f"{color}_{material}_{thickness}_{config.aspect_ratio}.png"


def construct_frame_path(config: FrameAssetConfig, base_dir) -> str:
    """Build the asset path for a frame configuration (no filesystem access)"""
    return str(Path(base_dir) / frame_asset_filename(config))


def get_optimal_frame_config(dimensions: PhotoDimensions, selection: FrameSelection) -> OptimalFrameConfig:
    """
    Get the frame configuration that best fits a photo

    A portrait photo matched to the square template needs no rotation.
    """
    orientation = detect_photo_orientation(dimensions)
    aspect_ratio = find_closest_aspect_ratio(orientation.aspect_ratio)

    return OptimalFrameConfig(
        color_name=selection.color_name,
        material_type=selection.material_type,
        thickness=selection.thickness,
        aspect_ratio=aspect_ratio,
        needs_rotation=orientation.needs_rotation and aspect_ratio != SQUARE_RATIO,
    )


def open_frame_image(path: str) -> Image.Image:
    """Load a frame image from disk, fully decoded as RGBA"""
    asset_path = Path(path)
    if not asset_path.is_file():
        raise AssetLoadFailure(path, "file not found")

    try:
        with Image.open(asset_path) as img:
            return img.convert('RGBA')
    except (OSError, UnidentifiedImageError) as e:
        raise AssetLoadFailure(path, str(e))


class FrameAssetCache:
    """Resolved asset path -> loaded image. Entries live until clear()."""

    def __init__(self):
        self._images: Dict[str, Image.Image] = {}

    def get(self, path: str) -> Optional[Image.Image]:
        return self._images.get(path)

    def put(self, path: str, image: Image.Image) -> None:
        self._images[path] = image

    def clear(self) -> None:
        self._images.clear()

    def __contains__(self, path: str) -> bool:
        return path in self._images

    def __len__(self) -> int:
        return len(self._images)


class FrameAssetResult:
    """Outcome of resolving a frame asset: loaded, fallback or failed"""

    LOADED = "loaded"
    FALLBACK = "fallback"
    FAILED = "failed"

    def __init__(self, status: str, path: str, image: Optional[Image.Image] = None,
                 requested_path: str = None, error: Exception = None):
        self.status = status
        self.path = path
        self.image = image
        self.requested_path = requested_path or path
        self.error = error

    @property
    def is_fallback(self) -> bool:
        return self.status == self.FALLBACK

    @property
    def ok(self) -> bool:
        return self.status != self.FAILED

    def to_dict(self) -> Dict:
        result = {
            'status': self.status,
            'asset_path': self.path,
            'requested_path': self.requested_path,
        }
        if self.image is not None:
            result['size'] = list(self.image.size)
        if self.error is not None:
            result['error'] = self.error.to_dict() if hasattr(self.error, 'to_dict') else str(self.error)
        return result

    def __repr__(self):
        return f"FrameAssetResult(status={self.status!r}, path={self.path!r})"


class FrameAssetManager:
    """Resolves frame assets for photos, with a per-instance cache"""

    def __init__(self, base_dir, fallback_asset: str = DEFAULT_FALLBACK_ASSET,
                 max_workers: int = 4,
                 image_opener: Callable[[str], Image.Image] = open_frame_image,
                 cache: FrameAssetCache = None):
        self.base_dir = Path(base_dir)
        self.fallback_path = str(self.base_dir / fallback_asset)
        self.cache = cache if cache is not None else FrameAssetCache()
        self._open_image = image_opener
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="frame-asset")

        logger.info(f"Frame asset manager initialized with assets from: {self.base_dir}")

    def construct_frame_path(self, config: FrameAssetConfig) -> str:
        return construct_frame_path(config, self.base_dir)

    def preload_frame_asset(self, config: FrameAssetConfig) -> "Future[FrameAssetResult]":
        """
        Start loading the frame asset for a configuration

        Cache hits come back as an already-completed future. Otherwise the
        load runs on the manager's thread pool. The future raises
        FallbackLoadFailure when neither the asset nor the fallback loads.
        """
        asset_path = self.construct_frame_path(config)

        cached = self.cache.get(asset_path)
        if cached is not None:
            logger.debug(f"Frame asset cache hit: {asset_path}")
            future = Future()
            future.set_result(FrameAssetResult(FrameAssetResult.LOADED, asset_path, cached))
            return future

        return self._executor.submit(self._load_or_raise, asset_path)

    def resolve_frame_asset(self, config: FrameAssetConfig) -> FrameAssetResult:
        """Resolve a frame asset synchronously; failures come back as a FAILED result"""
        return self._resolve(self.construct_frame_path(config))

    def load_frame_asset(self, config: FrameAssetConfig) -> FrameAssetResult:
        """Block until the asset (or fallback) is loaded; raises FallbackLoadFailure"""
        return self.preload_frame_asset(config).result()

    def clear_cache(self) -> None:
        self.cache.clear()
        logger.debug("Frame asset cache cleared")

    @property
    def cache_size(self) -> int:
        return len(self.cache)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def _load_or_raise(self, asset_path: str) -> FrameAssetResult:
        result = self._resolve(asset_path)
        if not result.ok:
            raise result.error
        return result

    def _resolve(self, asset_path: str) -> FrameAssetResult:
        cached = self.cache.get(asset_path)
        if cached is not None:
            return FrameAssetResult(FrameAssetResult.LOADED, asset_path, cached)

        try:
            image = self._open_image(asset_path)
        except AssetLoadFailure as e:
            logger.warning(f"Failed to load frame asset: {asset_path}, using fallback ({e.details.get('reason')})")
        else:
            self.cache.put(asset_path, image)
            logger.debug(f"Loaded frame asset: {asset_path} ({image.size})")
            return FrameAssetResult(FrameAssetResult.LOADED, asset_path, image)

        return self._resolve_fallback(asset_path)

    def _resolve_fallback(self, requested_path: str) -> FrameAssetResult:
        cached = self.cache.get(self.fallback_path)
        if cached is not None:
            return FrameAssetResult(FrameAssetResult.FALLBACK, self.fallback_path, cached,
                                    requested_path=requested_path)

        try:
            image = self._open_image(self.fallback_path)
        except AssetLoadFailure as e:
            logger.error(f"Failed to load fallback frame asset: {self.fallback_path}")
            error = FallbackLoadFailure(self.fallback_path, requested_path, e.details.get('reason'))
            return FrameAssetResult(FrameAssetResult.FAILED, self.fallback_path,
                                    requested_path=requested_path, error=error)

        self.cache.put(self.fallback_path, image)
        return FrameAssetResult(FrameAssetResult.FALLBACK, self.fallback_path, image,
                                requested_path=requested_path)


def create_frame_asset_manager(config) -> FrameAssetManager:
    """Factory function to create a frame asset manager from app configuration"""
    return FrameAssetManager(
        base_dir=config.FRAME_ASSET_DIR,
        fallback_asset=config.FALLBACK_FRAME_ASSET,
        max_workers=config.ASSET_LOADER_WORKERS,
    )
