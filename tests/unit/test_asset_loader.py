from pathlib import Path

import httpx
import pytest

from app.assets.exceptions import AssetLoadError
from app.assets.loader import AssetLoader


class TestUrlFor:
    def test_relative_path(self, tmp_path: Path) -> None:
        loader = AssetLoader(tmp_path, base_url="/static/redactor/")
        assert loader.url_for("/images/p.png") == "/static/redactor/images/p.png"

    def test_absolute_and_data_urls_pass_through(self, tmp_path: Path) -> None:
        loader = AssetLoader(tmp_path)
        assert loader.url_for("https://cdn.example.com/p.png") == "https://cdn.example.com/p.png"
        assert loader.url_for("data:image/png;base64,AAAA") == "data:image/png;base64,AAAA"


class TestReadText:
    def test_reads_file(self, tmp_path: Path) -> None:
        (tmp_path / "a.css").write_text("p { color: red; }", encoding="utf-8")
        assert AssetLoader(tmp_path).read_text("a.css") == "p { color: red; }"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(AssetLoadError, match="Asset not found"):
            AssetLoader(tmp_path).read_text("missing.css")

    def test_fetches_url(self, tmp_path: Path) -> None:
        client = httpx.Client(
            transport=httpx.MockTransport(lambda _: httpx.Response(200, text="a { b: c; }"))
        )
        loader = AssetLoader(tmp_path, http_client=client)
        assert loader.read_text("https://cdn.example.com/a.css") == "a { b: c; }"

    def test_http_error(self, tmp_path: Path) -> None:
        client = httpx.Client(transport=httpx.MockTransport(lambda _: httpx.Response(404)))
        loader = AssetLoader(tmp_path, http_client=client)
        with pytest.raises(AssetLoadError):
            loader.read_text("https://cdn.example.com/a.css")
