import json
from pathlib import Path
from typing import Any

import pytest

PAGE_HTML = """<html>
<head><title>Acme Corp dashboard</title></head>
<body>
  <header>
    <img class="logo" src="/logos/acme.png" width="120" height="40">
    <h1 class="company">Acme Corp</h1>
  </header>
  <main>
    <p class="welcome">Welcome back, Acme Corp team (acme.com)</p>
    <p class="contact">Owner: <span class="person">Wile E. Coyote</span></p>
    <a class="portal" href="https://portal.acme.com/billing">Billing portal</a>
    <td class="phone">+1 555 0100</td>
  </main>
</body>
</html>
"""


def _page_config() -> dict[str, Any]:
    return {
        "transformations": [
            {"name": "company", "type": "customerReplace", "selectors": [".company"],
             "options": {"replaceWith": "customerName"}},
            {"name": "welcome", "type": "partialReplace", "selectors": [".welcome", "title"],
             "options": {"relatedWordsMode": "fixed"}},
            {"name": "people", "type": "scramble", "selectors": [".person"],
             "options": {"preserveEnds": True}},
            {"name": "logo", "type": "replaceImage", "selectors": [".logo"],
             "options": {"replacementImage": "images/placeholder.png"}},
            {"name": "links", "type": "maskLinks", "selectors": [".portal"]},
            {"name": "phones", "type": "functionReplace", "selectors": [".phone"],
             "options": {"functionName": "generateRandomPhoneNumber"}},
            {"name": "avatars", "type": "injectCSS",
             "options": {"cssRules": [{"selector": ".avatar", "properties": {"display": "none"}}]}},
        ],
        "urlPatterns": {"customerPath": {"pattern": r"/customer/(\d+)/", "customerIdGroup": 1}},
        "customerMapping": {
            "1": {
                "name": "Enterprise",
                "customers": {
                    "42": {"customerName": "Acme Corp", "customerDomain": "acme.com",
                           "relatedWords": ["Coyote"]}
                },
            }
        },
        "customerSpecific": {
            "customerNameReplacement": "Globex",
            "customerDomainReplacement": "globex.test",
        },
        "settings": {"processInterval": 20, "showDemoIndicator": True},
    }


@pytest.fixture
def page_file(tmp_path: Path) -> Path:
    path = tmp_path / "dashboard.html"
    path.write_text(PAGE_HTML, encoding="utf-8")
    return path


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "redactor.json"
    path.write_text(json.dumps(_page_config()), encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("CONFIG_MAX_RETRIES", "1")
    monkeypatch.setenv("CONFIG_RETRY_DELAY_SECONDS", "0")
    monkeypatch.setenv("REVEAL_DELAY_MS", "10")
