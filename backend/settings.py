import os
from dataclasses import dataclass
from typing import Optional, Tuple

from domain.models import PatternRule
from services.url_rules import load_rules_file, rules_from_config

# Basic settings helper to read environment configuration.

MAX_EXTERNAL_SEARCH_SUGGESTIONS = 5


def _as_bool(val: str | None, default: bool = False) -> bool:
    if val is None:
        return default
    return val.lower() in ("1", "true", "yes", "on")


def _as_int(val: str | None, default: int) -> int:
    if val is None or not val.strip():
        return default
    return int(val)


@dataclass(frozen=True)
class SearchConfig:
    """Immutable snapshot of everything a search needs."""
    rules: Tuple[PatternRule, ...]
    search_provider: str = "osm"
    geocoding_api_key: str = ""
    amap_api_key: str = ""
    baidu_api_key: str = ""
    baidu_secret_key: str = ""
    use_google_places: bool = False
    use_cn_places: bool = False
    max_suggestions: int = MAX_EXTERNAL_SEARCH_SUGGESTIONS
    locality_bias: bool = True


class Settings:
    def __init__(self) -> None:
        self.SEARCH_PROVIDER: str = (os.getenv("SEARCH_PROVIDER") or "osm").lower()
        self.GEOCODING_API_KEY: str = os.getenv("GEOCODING_API_KEY", "")
        self.AMAP_API_KEY: str = os.getenv("AMAP_API_KEY", "")
        self.BAIDU_API_KEY: str = os.getenv("BAIDU_API_KEY", "")
        self.BAIDU_SECRET_KEY: str = os.getenv("BAIDU_SECRET_KEY", "")
        self.USE_GOOGLE_PLACES: bool = _as_bool(os.getenv("USE_GOOGLE_PLACES"), False)
        self.USE_CN_PLACES: bool = _as_bool(os.getenv("USE_CN_PLACES"), False)
        self.MAX_EXTERNAL_SEARCH_SUGGESTIONS: int = _as_int(
            os.getenv("MAX_EXTERNAL_SEARCH_SUGGESTIONS"), MAX_EXTERNAL_SEARCH_SUGGESTIONS
        )
        self.LOCALITY_BIAS: bool = _as_bool(os.getenv("LOCALITY_BIAS"), True)
        self.URL_PARSING_RULES_PATH: Optional[str] = os.getenv("URL_PARSING_RULES_PATH")
        self.DEBUG: bool = _as_bool(os.getenv("GEOSEARCH_DEBUG"), False)

    def url_parsing_rules(self) -> Tuple[PatternRule, ...]:
        """Load the configured rules, or the presets when no file is set."""
        if self.URL_PARSING_RULES_PATH:
            return load_rules_file(self.URL_PARSING_RULES_PATH)
        return rules_from_config(None)

    def search_config(self) -> SearchConfig:
        return SearchConfig(
            rules=self.url_parsing_rules(),
            search_provider=self.SEARCH_PROVIDER,
            geocoding_api_key=self.GEOCODING_API_KEY,
            amap_api_key=self.AMAP_API_KEY,
            baidu_api_key=self.BAIDU_API_KEY,
            baidu_secret_key=self.BAIDU_SECRET_KEY,
            use_google_places=self.USE_GOOGLE_PLACES,
            use_cn_places=self.USE_CN_PLACES,
            max_suggestions=self.MAX_EXTERNAL_SEARCH_SUGGESTIONS,
            locality_bias=self.LOCALITY_BIAS,
        )


settings = Settings()
