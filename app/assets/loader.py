from pathlib import Path

import httpx

from app.assets.exceptions import AssetLoadError


class AssetLoader:
    """Resolves bundled asset paths to URLs and reads stylesheet contents."""

    def __init__(
        self,
        assets_root: Path,
        base_url: str = "/redactor-assets",
        http_client: httpx.Client | None = None,
    ) -> None:
        self._assets_root = assets_root
        self._base_url = base_url.rstrip("/")
        self._http_client = http_client

    def url_for(self, asset_path: str) -> str:
        """Public URL for a bundled asset, e.g. a placeholder image."""
        if asset_path.startswith(("http://", "https://", "data:")):
            return asset_path
        return f"{self._base_url}/{asset_path.lstrip('/')}"

    def read_text(self, asset_path: str) -> str:
        """Read a text asset from disk, or over HTTP for absolute URLs.

        Raises:
            AssetLoadError: if the asset is missing or unreachable.
        """
        if asset_path.startswith(("http://", "https://")):
            return self._fetch(asset_path)
        path = self._assets_root / asset_path.lstrip("/")
        if not path.exists():
            raise AssetLoadError(f"Asset not found: {path}")
        try:
            return path.read_text(encoding="utf-8")
        except OSError as exc:
            raise AssetLoadError(f"Cannot read asset {path}: {exc}") from exc

    def _fetch(self, url: str) -> str:
        try:
            if self._http_client is not None:
                response = self._http_client.get(url)
            else:
                response = httpx.get(url, timeout=10.0)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise AssetLoadError(f"Failed to load {url}: {exc}") from exc
        return response.text
