import sys
from pathlib import Path

import pytest

# Ensure the backend package root is on sys.path for direct pytest runs
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

SEARCH_ENV_VARS = (
    "SEARCH_PROVIDER",
    "GEOCODING_API_KEY",
    "AMAP_API_KEY",
    "BAIDU_API_KEY",
    "BAIDU_SECRET_KEY",
    "USE_GOOGLE_PLACES",
    "USE_CN_PLACES",
    "MAX_EXTERNAL_SEARCH_SUGGESTIONS",
    "LOCALITY_BIAS",
    "URL_PARSING_RULES_PATH",
)


@pytest.fixture(autouse=True)
def clean_search_env(monkeypatch):
    """Keep developer search configuration out of the tests."""
    for name in SEARCH_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
