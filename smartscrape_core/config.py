#!/usr/bin/env python3
from dataclasses import dataclass
import os
from typing import Any, Dict
from urllib.parse import urlparse
from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ["true", "1", "yes"]


@dataclass
class Config:
    """Application configuration"""
    # Local inference endpoint (Ollama-compatible /api/generate)
    llm_endpoint: str = os.getenv("SMARTSCRAPE_LLM_ENDPOINT", "http://localhost:11434/api/generate")
    llm_model: str = os.getenv("SMARTSCRAPE_MODEL", "gemma2:3b")
    llm_timeout: float = float(os.getenv("SMARTSCRAPE_LLM_TIMEOUT", "60"))
    llm_temperature: float = float(os.getenv("SMARTSCRAPE_TEMPERATURE", "0.1"))
    llm_top_p: float = float(os.getenv("SMARTSCRAPE_TOP_P", "0.9"))
    llm_json_mode: bool = _env_bool("SMARTSCRAPE_LLM_JSON_MODE", "false")
    analysis_max_tokens: int = int(os.getenv("SMARTSCRAPE_ANALYSIS_MAX_TOKENS", "500"))
    extraction_max_tokens: int = int(os.getenv("SMARTSCRAPE_EXTRACTION_MAX_TOKENS", "1000"))
    status_timeout: float = float(os.getenv("SMARTSCRAPE_STATUS_TIMEOUT", "5"))

    # Result display / caching
    max_results: int = int(os.getenv("SMARTSCRAPE_MAX_RESULTS", "20"))
    cache_enabled: bool = _env_bool("SMARTSCRAPE_CACHE", "true")
    cache_capacity: int = int(os.getenv("SMARTSCRAPE_CACHE_CAPACITY", "100"))
    cache_ttl: float = float(os.getenv("SMARTSCRAPE_CACHE_TTL", "1800"))

    # Rate limiting
    rate_limit_cooldown: float = float(os.getenv("SMARTSCRAPE_RATE_LIMIT_COOLDOWN", "2.0"))
    rate_limit_max_keys: int = int(os.getenv("SMARTSCRAPE_RATE_LIMIT_MAX_KEYS", "1000"))

    # Scraping
    settle_delay: float = float(os.getenv("SMARTSCRAPE_SETTLE_DELAY", "2.0"))
    navigation_timeout: float = float(os.getenv("SMARTSCRAPE_NAVIGATION_TIMEOUT", "30"))
    max_items: int = int(os.getenv("SMARTSCRAPE_MAX_ITEMS", "20"))
    max_html_chars: int = int(os.getenv("SMARTSCRAPE_MAX_HTML_CHARS", "50000"))
    extraction_html_chars: int = int(os.getenv("SMARTSCRAPE_EXTRACTION_HTML_CHARS", "10000"))
    description_chars: int = int(os.getenv("SMARTSCRAPE_DESCRIPTION_CHARS", "200"))
    max_structured_blocks: int = int(os.getenv("SMARTSCRAPE_MAX_STRUCTURED_BLOCKS", "10"))
    headless: bool = _env_bool("SMARTSCRAPE_HEADLESS", "true")

    # Service
    api_host: str = os.getenv("SMARTSCRAPE_API_HOST", "127.0.0.1")
    api_port: int = int(os.getenv("SMARTSCRAPE_API_PORT", "8000"))
    log_level: str = os.getenv("SMARTSCRAPE_LOG_LEVEL", "INFO")

    # Settings-UI payload keys -> attribute names
    SETTINGS_KEYS = {
        "gemmaEndpoint": "llm_endpoint",
        "gemmaModel": "llm_model",
        "maxResults": "max_results",
        "enableCache": "cache_enabled",
    }

    def __post_init__(self):
        if self.cache_capacity < 1:
            raise ValueError("cache_capacity must be at least 1")
        if self.rate_limit_max_keys < 1:
            raise ValueError("rate_limit_max_keys must be at least 1")
        _check_endpoint(self.llm_endpoint)

    @property
    def llm_host(self) -> str:
        """Base URL of the inference server (endpoint without its /api/... path)."""
        parsed = urlparse(self.llm_endpoint)
        return f"{parsed.scheme}://{parsed.netloc}"

    def settings(self) -> Dict[str, Any]:
        """Settings-UI view of the configuration."""
        return {key: getattr(self, attr) for key, attr in self.SETTINGS_KEYS.items()}

    def apply_settings(self, settings: Dict[str, Any]) -> Dict[str, Any]:
        """Validate and apply a settings-UI payload in place.

        Unknown keys are ignored. All values are validated before any is
        applied, so an invalid payload leaves the config untouched.
        """
        if not isinstance(settings, dict):
            raise ValueError("settings must be an object")
        updates: Dict[str, Any] = {}
        for key, attr in self.SETTINGS_KEYS.items():
            if key not in settings:
                continue
            value = settings[key]
            if attr == "llm_endpoint":
                _check_endpoint(value)
            elif attr == "llm_model":
                if not isinstance(value, str) or not value.strip():
                    raise ValueError("gemmaModel must be a non-empty string")
                value = value.strip()
            elif attr == "max_results":
                if isinstance(value, bool):
                    raise ValueError("maxResults must be a positive integer")
                try:
                    value = int(value)
                except (TypeError, ValueError):
                    raise ValueError("maxResults must be a positive integer")
                if value < 1:
                    raise ValueError("maxResults must be a positive integer")
            elif attr == "cache_enabled":
                if not isinstance(value, bool):
                    raise ValueError("enableCache must be a boolean")
            updates[attr] = value
        for attr, value in updates.items():
            setattr(self, attr, value)
        return self.settings()


def _check_endpoint(value: Any) -> None:
    if not isinstance(value, str):
        raise ValueError("endpoint must be a string")
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError(f"invalid endpoint URL: {value!r}")


