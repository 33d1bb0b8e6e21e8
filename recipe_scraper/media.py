import logging
import re
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

import httpx

from recipe_scraper.browser import UA

logger = logging.getLogger(__name__)

IMAGE_SUBDIR = Path("recipes") / "tasty"
IMAGE_TIMEOUT = 30.0
_KNOWN_EXTENSIONS = ("jpg", "jpeg", "png", "webp")


def generate_slug(title: str) -> str:
    """URL-safe slug from a recipe title, at most 50 characters."""
    slug = re.sub(r"[^a-z0-9]+", "-", (title or "").lower())
    return slug.strip("-")[:50]


def _extension(content_type: Optional[str], url: str) -> str:
    if content_type:
        if "png" in content_type:
            return "png"
        if "webp" in content_type:
            return "webp"
        if "jpeg" in content_type or "jpg" in content_type:
            return "jpg"
    suffix = Path(urlparse(url).path).suffix.lower().lstrip(".")
    return suffix if suffix in _KNOWN_EXTENSIONS else "jpg"


class ImageDownloader:
    """Stores recipe hero images under ``<media_dir>/recipes/tasty/``."""

    def __init__(self, media_dir: Path, client: Optional[httpx.AsyncClient] = None):
        self.media_dir = Path(media_dir)
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers={"User-Agent": UA},
                timeout=IMAGE_TIMEOUT,
                follow_redirects=True,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def check_access(self) -> bool:
        target = self.media_dir / IMAGE_SUBDIR
        try:
            target.mkdir(parents=True, exist_ok=True)
            probe = target / ".write-test"
            probe.write_bytes(b"")
            probe.unlink()
        except OSError as e:
            logger.error(f"Media directory not writable ({target}): {e}")
            return False
        logger.info(f"Media directory access confirmed: {target}")
        return True

    async def download(self, image_url: str, slug: str) -> str:
        """Save the image locally; returns the local path, or the original URL when the download fails."""
        if not image_url or not image_url.startswith("http"):
            logger.warning("Invalid image URL provided")
            return ""

        try:
            logger.debug(f"Downloading image: {image_url}")
            response = await self._get_client().get(image_url)
            response.raise_for_status()

            ext = _extension(response.headers.get("content-type"), image_url)
            path = self.media_dir / IMAGE_SUBDIR / f"{slug}.{ext}"
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(response.content)
        except (httpx.HTTPError, OSError) as e:
            logger.warning(f"Failed to download image for {slug}: {e}")
            return image_url

        logger.debug(f"Image stored: {path}")
        return str(path)
