import json
import time
from pathlib import Path
from typing import Any, Callable

import httpx

from app.config.exceptions import ConfigLoadError, ConfigValidationError
from app.config.models import RedactorConfig
from app.config.settings import Settings
from app.config.validator import validate_and_build
from app.logging.logger import Log


class ConfigLoader:
    """Reads the page configuration from a path or URL, retrying on failure.

    ``config_max_retries == 0`` retries forever. When retries are exhausted,
    or the document is readable but invalid, the minimal (empty)
    configuration is returned so the host page is never broken by a bad
    config.
    """

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.Client | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._settings = settings
        self._http_client = http_client
        self._sleep = sleep

    def load(self, source: str | None = None) -> RedactorConfig:
        location = source or self._settings.config_path
        max_retries = self._settings.config_max_retries
        attempt = 0

        while max_retries == 0 or attempt < max_retries:
            attempt += 1
            try:
                raw = self.read_json(location)
            except ConfigLoadError as exc:
                if max_retries == 0:
                    Log.error(
                        f"Failed to load configuration (attempt {attempt}), "
                        f"retrying indefinitely: {exc}"
                    )
                elif attempt >= max_retries:
                    Log.error(f"Failed to load configuration after {max_retries} attempts: {exc}")
                    break
                else:
                    Log.error(
                        f"Failed to load configuration (attempt {attempt}/{max_retries}), "
                        f"retrying: {exc}"
                    )
                self._sleep(self._settings.config_retry_delay_seconds)
                continue

            try:
                config = validate_and_build(raw)
            except ConfigValidationError as exc:
                Log.error(f"Invalid configuration in {location}: {exc}")
                return RedactorConfig.minimal()
            Log.info(
                f"Configuration loaded from {location}: "
                f"{len(config.transformations)} transformations"
            )
            return config

        Log.warning("Falling back to minimal configuration")
        return RedactorConfig.minimal()

    def read_json(self, location: str) -> Any:
        """Fetch and decode the raw JSON document.

        Raises:
            ConfigLoadError: if the document cannot be read or decoded.
        """
        try:
            if location.startswith(("http://", "https://")):
                return self._fetch(location)
            return json.loads(Path(location).read_text(encoding="utf-8"))
        except (OSError, ValueError, httpx.HTTPError) as exc:
            raise ConfigLoadError(f"Cannot read configuration from {location}: {exc}") from exc

    def _fetch(self, url: str) -> Any:
        if self._http_client is not None:
            response = self._http_client.get(url)
        else:
            response = httpx.get(url, timeout=10.0)
        response.raise_for_status()
        return response.json()
