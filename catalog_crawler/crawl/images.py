"""Product image downloads."""

import hashlib
import logging
import posixpath
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

import httpx

from catalog_crawler.config import settings
from catalog_crawler.metrics import record_image_download

logger = logging.getLogger(__name__)

DEFAULT_EXTENSION = ".jpg"
MAX_EXTENSION_LENGTH = 5


@dataclass
class ImageDownload:
    """A stored image."""

    filename: str
    path: str


def content_hash(text: str) -> str:
    """Lowercase hex SHA-256 of the text, used as a stable image filename."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def image_extension(url: str) -> str:
    """Extension from the URL path (query ignored), ``.jpg`` when missing or implausible."""
    path = url.split("?", 1)[0]
    ext = posixpath.splitext(urlparse(path).path)[1]
    if not ext or len(ext) > MAX_EXTENSION_LENGTH:
        return DEFAULT_EXTENSION
    return ext


class ImageFetcher:
    """Downloads images over HTTP into a per-site folder."""

    def __init__(self, client: Optional[httpx.AsyncClient] = None):
        """
        Args:
            client: Optional shared client (tests pass one with a mock transport)
        """
        self._client = client

    async def download(self, url: str, content_hash: str, dest_folder: str | Path) -> Optional[ImageDownload]:
        """
        Download an image to ``<dest_folder>/<content_hash><ext>``.

        Args:
            url: Absolute image URL
            content_hash: Hash used as the file stem
            dest_folder: Destination folder (created when missing)

        Returns:
            ImageDownload, or None when the response is not an image or the request fails
        """
        try:
            if self._client is not None:
                response = await self._client.get(url, follow_redirects=True)
            else:
                async with httpx.AsyncClient(
                    timeout=settings.image_timeout_seconds,
                    follow_redirects=True,
                    headers={"User-Agent": settings.user_agent},
                ) as client:
                    response = await client.get(url)

            if not response.is_success:
                logger.warning(f"Image download failed for {url}: HTTP {response.status_code}")
                record_image_download(False)
                return None

            content_type = response.headers.get("content-type", "")
            if not content_type.startswith("image"):
                logger.warning(f"URL did not return an image ({content_type or 'no content-type'}): {url}")
                record_image_download(False)
                return None

            folder = Path(dest_folder)
            folder.mkdir(parents=True, exist_ok=True)
            filename = f"{content_hash}{image_extension(url)}"
            path = folder / filename
            path.write_bytes(response.content)

            logger.debug(f"Downloaded image {url} -> {path}")
            record_image_download(True)
            return ImageDownload(filename=filename, path=str(path))

        except httpx.HTTPError as e:
            logger.error(f"Error downloading image {url}: {e}")
            record_image_download(False)
            return None
        except OSError as e:
            logger.error(f"Error saving image {url} to {dest_folder}: {e}")
            record_image_download(False)
            return None
