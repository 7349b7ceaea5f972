"""Non-blocking image asset cache.

Maps an image reference string (exactly as written in the source) to an
ImageAsset. The first request for a reference inserts a Placeholder and
submits one background probe; later requests return the cached entry. The
owner calls :meth:`ImageAssetCache.poll` on its own schedule to fold finished
probes back into the cache. Entries are never evicted.

Only the owning thread mutates the cache. Worker threads touch nothing but
their own reference and report back through their future.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Optional

from PIL import Image, UnidentifiedImageError

from mdview.config import Config
from mdview.exceptions import ImageResolveError
from mdview.ir.schema import AssetStatus, ImageAsset

logger = logging.getLogger(__name__)


class ImageAssetCache:
    """Deduplicated image resolver backed by a thread pool.

    Args:
        config: mdview configuration; ``image`` holds the pool size, remote
            schemes and polling defaults.
        base_path: Default directory for relative references.
    """

    def __init__(self, config: Optional[Config] = None, base_path: Optional[Path] = None):
        self.config = config or Config.default()
        self.base_path = Path(base_path) if base_path is not None else None
        self._assets: dict[str, ImageAsset] = {}
        self._pending: dict[str, Future] = {}
        self._executor: Optional[ThreadPoolExecutor] = None
        self.spawned_tasks = 0

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    def request(
        self,
        reference: str,
        alt_text: str = "",
        base_path: Optional[Path] = None,
    ) -> ImageAsset:
        """Return the asset for ``reference``, starting resolution if needed.

        Never blocks on I/O. A reference seen before returns its cached entry
        whatever its status; an unseen local reference returns a new
        Placeholder and spawns exactly one probe.
        """
        cached = self._assets.get(reference)
        if cached is not None:
            return cached

        if self._is_remote(reference):
            asset = ImageAsset(
                reference=reference,
                alt_text=alt_text,
                status=AssetStatus.FAILED,
                error="Remote image download deferred",
            )
            self._assets[reference] = asset
            logger.debug("Remote image reference %s marked failed", reference)
            return asset

        asset = ImageAsset(reference=reference, alt_text=alt_text)
        if reference not in self._pending:
            path = self._resolve_path(reference, base_path)
            self._pending[reference] = self._pool().submit(_probe_image, path)
            self.spawned_tasks += 1
            logger.debug("Spawned image probe for %s (%s)", reference, path)
        self._assets[reference] = asset
        return asset

    def get(self, reference: str) -> Optional[ImageAsset]:
        return self._assets.get(reference)

    def assets(self) -> dict[str, ImageAsset]:
        """Snapshot of every cached entry keyed by reference."""
        return dict(self._assets)

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    # ------------------------------------------------------------------
    # Reconciliation
    # ------------------------------------------------------------------

    def poll(self) -> int:
        """Fold completed probes into the cache without blocking.

        Returns:
            Number of entries that moved out of Placeholder in this call.
        """
        resolved = 0
        for reference, future in list(self._pending.items()):
            if not future.done():
                continue
            del self._pending[reference]
            asset = self._assets.get(reference) or ImageAsset(reference=reference)
            self._assets[reference] = self._settle(asset, future)
            resolved += 1
        return resolved

    def wait(self, timeout: Optional[float] = None, interval: Optional[float] = None) -> int:
        """Poll until nothing is pending or ``timeout`` seconds pass.

        Returns:
            Total number of entries resolved while waiting.
        """
        options = self.config.image
        timeout = options.poll_timeout_seconds if timeout is None else timeout
        interval = options.poll_interval_seconds if interval is None else interval

        deadline = time.monotonic() + timeout
        resolved = self.poll()
        while self._pending and time.monotonic() < deadline:
            time.sleep(interval)
            resolved += self.poll()
        if self._pending:
            logger.warning("%d image(s) still pending after %.2fs", len(self._pending), timeout)
        return resolved

    def _settle(self, asset: ImageAsset, future: Future) -> ImageAsset:
        if future.cancelled():
            return self._failed(asset, "Resolution task was cancelled")

        error = future.exception()
        if error is not None:
            return self._failed(asset, str(error) or type(error).__name__)

        path, (width, height) = future.result()
        return asset.model_copy(
            update={
                "status": AssetStatus.READY,
                "width": width,
                "height": height,
                "resolved_path": str(path),
                "error": None,
            }
        )

    @staticmethod
    def _failed(asset: ImageAsset, message: str) -> ImageAsset:
        logger.warning("Image %s failed to resolve: %s", asset.reference, message)
        return asset.model_copy(update={"status": AssetStatus.FAILED, "error": message})

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _is_remote(self, reference: str) -> bool:
        lowered = reference.lower()
        return any(lowered.startswith(scheme) for scheme in self.config.image.remote_schemes)

    def _resolve_path(self, reference: str, base_path: Optional[Path]) -> Path:
        path = Path(reference)
        base = Path(base_path) if base_path is not None else self.base_path
        if base is not None and not path.is_absolute():
            path = base / path
        return path

    def _pool(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self.config.image.max_workers,
                thread_name_prefix="mdview-image",
            )
        return self._executor

    def shutdown(self, wait: bool = True) -> None:
        """Stop the worker pool. Cached entries remain readable."""
        if self._executor is not None:
            self._executor.shutdown(wait=wait)
            self._executor = None

    def __enter__(self) -> ImageAssetCache:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()


def _probe_image(path: Path) -> tuple[Path, tuple[int, int]]:
    """Read an image header and return its pixel size. Runs in a worker."""
    try:
        with Image.open(path) as img:
            return path, img.size
    except FileNotFoundError:
        raise ImageResolveError(f"Image file not found: {path}")
    except (OSError, UnidentifiedImageError, Image.DecompressionBombError, ValueError) as exc:
        raise ImageResolveError(f"Cannot decode image {path}: {exc}")
