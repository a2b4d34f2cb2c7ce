"""Tests for image downloads."""

import httpx
import pytest

from catalog_crawler.crawl.images import ImageFetcher, content_hash, image_extension


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestImageFetcher:
    """Tests for ImageFetcher.download."""

    @pytest.mark.asyncio
    async def test_non_success_returns_none_and_writes_nothing(self, tmp_path):
        client = _client(lambda request: httpx.Response(404, headers={"content-type": "image/png"}))
        fetcher = ImageFetcher(client=client)
        dest = tmp_path / "images"

        result = await fetcher.download("https://cdn.example/a.png", "abc", dest)

        assert result is None
        assert not dest.exists()

    @pytest.mark.asyncio
    async def test_non_image_content_type_returns_none(self, tmp_path):
        client = _client(lambda request: httpx.Response(200, headers={"content-type": "text/html"}, content=b"<html>"))
        fetcher = ImageFetcher(client=client)

        result = await fetcher.download("https://cdn.example/a.png", "abc", tmp_path)

        assert result is None
        assert list(tmp_path.iterdir()) == []

    @pytest.mark.asyncio
    async def test_success_writes_hash_named_file(self, tmp_path):
        client = _client(lambda request: httpx.Response(200, headers={"content-type": "image/webp"}, content=b"IMG"))
        fetcher = ImageFetcher(client=client)
        dest = tmp_path / "images" / "adams"

        result = await fetcher.download("https://cdn.example/p/photo.webp?v=3", "deadbeef", dest)

        assert result is not None
        assert result.filename == "deadbeef.webp"
        assert (dest / "deadbeef.webp").read_bytes() == b"IMG"
        assert result.path == str(dest / "deadbeef.webp")

    @pytest.mark.asyncio
    async def test_existing_file_is_overwritten(self, tmp_path):
        (tmp_path / "h.jpg").write_bytes(b"old")
        client = _client(lambda request: httpx.Response(200, headers={"content-type": "image/jpeg"}, content=b"new"))

        await ImageFetcher(client=client).download("https://cdn.example/x.jpg", "h", tmp_path)

        assert (tmp_path / "h.jpg").read_bytes() == b"new"

    @pytest.mark.asyncio
    async def test_network_error_returns_none(self, tmp_path):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        result = await ImageFetcher(client=_client(handler)).download("https://cdn.example/a.png", "abc", tmp_path)

        assert result is None


class TestHelpers:
    """Tests for hashing and extension rules."""

    def test_content_hash_is_lowercase_sha256_hex(self):
        assert content_hash("abc") == "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"

    def test_extension_from_path_without_query(self):
        assert image_extension("https://cdn.example/a/b.png?size=large") == ".png"

    def test_missing_extension_defaults_to_jpg(self):
        assert image_extension("https://cdn.example/image") == ".jpg"

    def test_implausible_extension_defaults_to_jpg(self):
        assert image_extension("https://cdn.example/file.download") == ".jpg"
