import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]

if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest
from network_blocker import install_network_blocker


@pytest.fixture(autouse=True)
def _default_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OPENROUTESERVICE_API_KEY", "test-ors-key-1234567890")
    monkeypatch.delenv("ORS_BASE_URL", raising=False)
    monkeypatch.delenv("ORS_MAX_RETRIES", raising=False)
    monkeypatch.delenv("SEARCH_SETTLE_SECONDS", raising=False)
    monkeypatch.delenv("LOCATION_TIMEOUT_SECONDS", raising=False)
    install_network_blocker(monkeypatch)
