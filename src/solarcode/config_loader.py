# src/solarcode/config_loader.py

from __future__ import annotations
from pathlib import Path
from typing import Any, Dict
import yaml

from .core.errors import ConfigurationError
from .secrets.sources import normalise_methods

KNOWN_PROVIDERS = ("solar", "echo")

# Resolved against the working directory when --config is not given
DEFAULT_CONFIG_PATH = Path("config/default.yaml")

# Same settings as the shipped config/default.yaml; used when that file is absent
DEFAULT_SETTINGS: Dict[str, Any] = {
    "model": {"provider": "solar"},
    "providers": {"echo": {"token_delay": 0.05}},
    "secrets": {"method": ["env", "keyring"], "mapping": {"solar": {"api_key": "upstage"}}},
    "runtime": {"stream": True, "temperature": 0.7},
    "system_prompt": "You are Solar, a concise and helpful assistant.",
}


def _require(d: Dict[str, Any], dotted: str, typ: type) -> Any:
    cur: Any = d
    for k in dotted.split("."):
        if not isinstance(cur, dict) or k not in cur:
            raise ConfigurationError(f"Missing config key: {dotted}")
        cur = cur[k]
    if typ is bool and not isinstance(cur, bool):
        raise ConfigurationError(f"'{dotted}' must be a boolean")
    if typ is str and not isinstance(cur, str):
        raise ConfigurationError(f"'{dotted}' must be a string")
    return cur


def load_config(path: Path) -> Dict[str, Any]:
    """
    CLI settings (provider choice, streaming, sampling). Backend credentials
    and limits are not read from here; they come from UPSTAGE_* variables.
    """
    if not path or not path.exists():
        raise ConfigurationError(f"Config file not found: {path}")
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Config is not valid YAML: {path}\n{e}") from None
    if not isinstance(raw, dict) or not raw:
        raise ConfigurationError(f"Config is empty or invalid YAML: {path}")

    # Validate required keys (no defaults here)
    _require(raw, "model.provider", str)
    _require(raw, "runtime.stream", bool)

    provider = str(raw["model"]["provider"]).lower()
    if provider not in KNOWN_PROVIDERS:
        raise ConfigurationError(
            f"Unknown model.provider '{provider}' (expected one of {', '.join(KNOWN_PROVIDERS)})."
        )
    raw["model"]["provider"] = provider

    temperature = raw["runtime"].get("temperature")
    if temperature is not None:
        if isinstance(temperature, bool) or not isinstance(temperature, (int, float)):
            raise ConfigurationError("'runtime.temperature' must be a number")
        if not 0.0 <= float(temperature) <= 2.0:
            raise ConfigurationError(f"'runtime.temperature' out of range: {temperature} (expected 0.0-2.0)")

    if "system_prompt" in raw and not isinstance(raw["system_prompt"], str):
        raise ConfigurationError("'system_prompt' must be a string")

    secrets = raw.get("secrets")
    if secrets is not None:
        if not isinstance(secrets, dict):
            raise ConfigurationError("'secrets' must be a mapping with 'method' and optional 'mapping'")
        try:
            normalise_methods(secrets.get("method", "env"))
        except (ValueError, TypeError) as e:
            raise ConfigurationError(f"Invalid 'secrets.method': {e}") from None
        if secrets.get("mapping") is not None and not isinstance(secrets["mapping"], dict):
            raise ConfigurationError("'secrets.mapping' must map provider names to {name: service}")

    return raw
