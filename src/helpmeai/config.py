from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from platformdirs import user_config_path

DEFAULT_REGISTRY_URL = "https://raw.githubusercontent.com/bamlab/helpmeai/main/skills-repo"
DEFAULT_TIMEOUT_S = 30.0


@dataclass(frozen=True)
class Config:
    registry_url: str = DEFAULT_REGISTRY_URL
    timeout_s: float = DEFAULT_TIMEOUT_S


@dataclass(frozen=True)
class RunOptions:
    """Everything a single run needs, fixed at startup."""

    directory: Path
    registry_url: str = DEFAULT_REGISTRY_URL
    timeout_s: float = DEFAULT_TIMEOUT_S
    install_all: bool = False
    list_only: bool = False


def config_path(path_override: str | Path | None = None) -> Path:
    if path_override is not None:
        return Path(path_override).expanduser()
    if env := os.getenv("HELPMEAI_CONFIG_PATH"):
        return Path(env).expanduser()
    return user_config_path("help-me-ai") / "config.json"


def load_config(path_override: str | Path | None = None) -> Config:
    path = config_path(path_override)
    if not path.exists():
        return Config()

    raw = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        return Config()

    allowed = {f.name for f in Config.__dataclass_fields__.values()}  # type: ignore[attr-defined]
    filtered: dict[str, Any] = {k: v for k, v in raw.items() if k in allowed}
    return Config(**filtered)  # type: ignore[arg-type]


def merge_config(
    base: Config,
    *,
    registry_url: str | None = None,
    timeout_s: float | None = None,
) -> Config:
    # Env overrides config; CLI overrides both.
    url = registry_url or os.getenv("HELPMEAI_REGISTRY_URL") or base.registry_url
    timeout = timeout_s or os.getenv("HELPMEAI_TIMEOUT_S") or base.timeout_s
    try:
        timeout_f = float(timeout)
    except (TypeError, ValueError):
        timeout_f = base.timeout_s
    return Config(registry_url=str(url).rstrip("/"), timeout_s=timeout_f)
