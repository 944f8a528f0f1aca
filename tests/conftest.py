import random
from pathlib import Path
from typing import Any, Callable

import pytest

from app.assets.loader import AssetLoader
from app.config.settings import Settings
from app.config.validator import validate_and_build
from app.dom.page import Page
from app.redactor.redactor import Redactor

CUSTOMER_URL = "https://app.example.com/customer/42/dashboard?tab=usage"


def customer_config(**overrides: Any) -> dict[str, Any]:
    """A page configuration with one known customer (id 42 in group 1)."""
    data: dict[str, Any] = {
        "transformations": [],
        "urlPatterns": {
            "customerPath": {"pattern": r"/customer/(\d+)/", "customerIdGroup": 1},
        },
        "customerMapping": {
            "1": {
                "name": "Enterprise",
                "customers": {
                    "42": {
                        "customerName": "Acme Corp",
                        "customerDomain": "acme.com",
                        "relatedWords": ["Roadrunner", "Coyote"],
                    }
                },
            }
        },
        "customerSpecific": {
            "customerNameReplacement": "Globex",
            "customerDomainReplacement": "globex.test",
        },
        "settings": {"processInterval": 100, "debug": False},
    }
    data.update(overrides)
    return data


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(
        assets_root=str(tmp_path / "assets"),
        reveal_delay_ms=10,
        mutation_debounce_ms=10,
    )


@pytest.fixture()
def assets(tmp_path: Path) -> AssetLoader:
    root = tmp_path / "assets"
    root.mkdir(parents=True, exist_ok=True)
    return AssetLoader(root, base_url="/redactor-assets")


@pytest.fixture()
def make_redactor(
    settings: Settings,
    assets: AssetLoader,
) -> Callable[..., Redactor]:
    """Build an initialized Redactor for an HTML snippet and transformation list."""

    def _make(
        html: str,
        transformations: list[dict[str, Any]],
        url: str = CUSTOMER_URL,
        seed: int = 7,
        enabled: bool | None = None,
        **config_overrides: Any,
    ) -> Redactor:
        config = validate_and_build(
            customer_config(transformations=transformations, **config_overrides)
        )
        page = Page(html, url=url)
        redactor = Redactor(
            page, config, settings, assets=assets, rng=random.Random(seed), enabled=enabled
        )
        redactor.initialize()
        return redactor

    return _make
