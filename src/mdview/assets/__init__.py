"""Image asset resolution."""

from mdview.assets.image_cache import ImageAssetCache

__all__ = ["ImageAssetCache"]
