from __future__ import annotations

import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from dotenv import load_dotenv

from .exceptions import ConfigError

DEFAULT_CFG = Path(__file__).parent / "config_default.yaml"


@dataclass
class Settings:
    history_file: str = "history.json"
    outputs_dir: str = "outputs"
    usd_to_brl_rate: float = 5.25
    app_id: int = 730
    pricing_rpm: int = 50
    fetch_cases: bool = True
    cases_path: str = "cases-value"
    steam_rate_limit_rpm: int = 600
    identity_workers: int = 16
    request_timeout: float = 25.0
    retry_transient_failures: bool = False
    report_window_hours: int = 24
    show_progress: bool = True
    log_level: str = "INFO"
    steam_api_key: str = ""
    montuga_api_key: str = ""

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d.pop("steam_api_key")
        d.pop("montuga_api_key")
        return d


def _coerce(name: str, default: Any, value: Any) -> Any:
    if value is None:
        return default
    try:
        if isinstance(default, bool):
            if isinstance(value, str):
                return value.strip().lower() in {"1", "true", "yes", "on"}
            return bool(value)
        if isinstance(default, int):
            return int(value)
        if isinstance(default, float):
            return float(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid value for {name}: {value!r}") from e
    return str(value)


def settings_from_dict(data: Mapping[str, Any]) -> Settings:
    base = Settings()
    kwargs = {}
    for f in fields(Settings):
        default = getattr(base, f.name)
        kwargs[f.name] = _coerce(f.name, default, data.get(f.name))
    return Settings(**kwargs)


def load_yaml(path: Path) -> Dict[str, Any]:
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path} does not contain a mapping")
    return data


def load_settings(
    path: Optional[Path] = None,
    overrides: Optional[Mapping[str, Any]] = None,
    env_file: Optional[Path] = None,
) -> Settings:
    """Defaults from YAML, then ``overrides``, then API keys from the environment."""
    if env_file is not None:
        load_dotenv(dotenv_path=env_file)
    data = load_yaml(path or DEFAULT_CFG)
    if overrides:
        data.update(overrides)
    data.setdefault("steam_api_key", os.getenv("STEAM_API_KEY", "").strip())
    data.setdefault("montuga_api_key", os.getenv("MONTUGA_API_KEY", "").strip())
    return settings_from_dict(data)
