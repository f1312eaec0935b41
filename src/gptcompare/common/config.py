"""Runtime settings: defaults, optional YAML file, environment overrides."""
from __future__ import annotations
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml

DEFAULT_API_URL = "https://api.openai.com/v1/responses"
DEFAULT_MODEL = "gpt-4.1-mini"
DEFAULT_TIMEOUT_S = 60.0
DEFAULT_CORS_ORIGINS = ("http://localhost:4200",)


def load_cfg(path: str | Path) -> dict[str, Any]:
    """Read a YAML config file; an empty file yields an empty mapping."""
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")
    return data


def _origins(value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        items = value.split(",")
    else:
        items = [str(v) for v in value or []]
    return tuple(o.strip() for o in items if o.strip())


@dataclass(frozen=True)
class Settings:
    """Provider credentials and service options, read-only after construction."""

    api_key: str = ""
    api_url: str = DEFAULT_API_URL
    default_model: str = DEFAULT_MODEL
    timeout_s: float = DEFAULT_TIMEOUT_S
    cors_origins: tuple[str, ...] = DEFAULT_CORS_ORIGINS
    log_level: str = "INFO"

    @classmethod
    def load(
        cls,
        cfg_path: str | Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> "Settings":
        """
        Build settings; environment variables win over the YAML file.

        Args:
            cfg_path: YAML file; falls back to ``GPTCOMPARE_CONFIG`` when None.
            env: Environment mapping, ``os.environ`` by default.
        """
        source = os.environ if env is None else env
        path = cfg_path or source.get("GPTCOMPARE_CONFIG")
        cfg = load_cfg(path) if path else {}

        api_key = source.get("OPENAI_API_KEY", cfg.get("api_key", ""))
        api_url = source.get("OPENAI_API_URL", cfg.get("api_url", DEFAULT_API_URL))
        model = source.get("OPENAI_MODEL", cfg.get("model", DEFAULT_MODEL))
        timeout_s = float(source.get("OPENAI_TIMEOUT_S", cfg.get("timeout_s", DEFAULT_TIMEOUT_S)))
        origins = source.get("CORS_ORIGINS", cfg.get("cors_origins", DEFAULT_CORS_ORIGINS))
        log_level = source.get("LOG_LEVEL", cfg.get("log_level", "INFO"))

        return cls(
            api_key=str(api_key),
            api_url=str(api_url),
            default_model=str(model),
            timeout_s=timeout_s,
            cors_origins=_origins(origins),
            log_level=str(log_level).upper(),
        )
