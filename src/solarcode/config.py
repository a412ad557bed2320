# src/solarcode/config.py
"""
Solar adapter settings, built once at startup from environment variables
(and a .env file, loaded by the bootstrap) and never mutated afterwards.
"""

from __future__ import annotations
import os
import re
from dataclasses import dataclass
from typing import Mapping, Optional
from urllib.parse import urlparse

from .core.errors import ConfigurationError, SETUP_URL
from .secrets.sources import SecretsResolver

DEFAULT_SOLAR_MODEL = "solar-pro2"
SUPPORTED_SOLAR_MODELS = (
    "solar-pro2",
    "solar-mini",
    "solar-pro-2",         # deprecated
    "solar-pro",           # deprecated
    "solar-1-mini-chat",   # deprecated
    "solar-1-mini",        # deprecated
)
SOLAR_MAX_TOKENS = 4096
DEFAULT_BASE_URL = "https://api.upstage.ai/v1/solar"
DEFAULT_TIMEOUT_MS = 120_000
DEFAULT_RETRY_COUNT = 3

API_KEY_ENV = "UPSTAGE_API_KEY"
_API_KEY_RE = re.compile(r"^up_[a-zA-Z0-9]{23,}$")
# "upstage" resolves to UPSTAGE_API_KEY in the environment and to the "upstage" keyring service
DEFAULT_SECRETS_MAPPING = {"solar": {"api_key": "upstage"}}


@dataclass(frozen=True)
class SolarConfig:
    api_key: str
    model: str = DEFAULT_SOLAR_MODEL
    base_url: str = DEFAULT_BASE_URL
    max_tokens: int = SOLAR_MAX_TOKENS
    timeout: int = DEFAULT_TIMEOUT_MS   # milliseconds
    retry_count: int = DEFAULT_RETRY_COUNT

    @property
    def timeout_seconds(self) -> float:
        return self.timeout / 1000.0

    def __repr__(self) -> str:
        # never print the key
        return (f"SolarConfig(model={self.model!r}, base_url={self.base_url!r}, "
                f"max_tokens={self.max_tokens}, timeout={self.timeout}, retry_count={self.retry_count})")


def _parse_env_int(env: Mapping[str, str], name: str, default: int, lo: int, hi: int) -> int:
    raw = env.get(name)
    if not raw:
        return default
    try:
        value = int(raw.strip(), 10)
    except ValueError:
        raise ConfigurationError(
            f'Invalid {name}: "{raw}"\nExpected a number between {lo} and {hi}', env_var=name
        ) from None
    if value < lo or value > hi:
        raise ConfigurationError(
            f"{name} out of range: {value}\nExpected a number between {lo} and {hi}", env_var=name
        )
    return value


def _is_valid_url(url: str) -> bool:
    parsed = urlparse(url)
    return parsed.scheme == "https" and bool(parsed.netloc)


def load_solar_config(
    environ: Optional[Mapping[str, str]] = None,
    secrets: Optional[SecretsResolver] = None,
) -> SolarConfig:
    """
    Validate the UPSTAGE_* environment and return an immutable SolarConfig.
    Raises ConfigurationError with setup instructions on the first problem found.
    """
    env = os.environ if environ is None else environ
    resolver = secrets or SecretsResolver(method="env", mapping=DEFAULT_SECRETS_MAPPING, environ=env)

    api_key = resolver.secret("solar")
    if not api_key:
        raise ConfigurationError(
            f"{API_KEY_ENV} is required for Solar Pro2.\n\n"
            "Setup instructions:\n"
            f"1. Get your API key from: {SETUP_URL}\n"
            "2. Set the environment variable:\n"
            f'   export {API_KEY_ENV}="your_key_here"\n\n'
            "Or create a .env file in your project root:\n"
            f"   {API_KEY_ENV}=your_key_here",
            env_var=API_KEY_ENV,
        )
    if not _API_KEY_RE.match(api_key):
        raise ConfigurationError(
            f"{API_KEY_ENV} format appears invalid.\n\n"
            "Expected format: up_xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx\n"
            f"Current value: {api_key[:8]}...\n\n"
            f"Please verify your API key at: {SETUP_URL}",
            env_var=API_KEY_ENV,
        )

    max_tokens = _parse_env_int(env, "UPSTAGE_MAX_TOKENS", SOLAR_MAX_TOKENS, 1, 8192)
    timeout = _parse_env_int(env, "UPSTAGE_TIMEOUT", DEFAULT_TIMEOUT_MS, 1000, 300_000)
    retry_count = _parse_env_int(env, "UPSTAGE_RETRY_COUNT", DEFAULT_RETRY_COUNT, 0, 10)

    model = env.get("UPSTAGE_MODEL") or DEFAULT_SOLAR_MODEL
    if model not in SUPPORTED_SOLAR_MODELS:
        raise ConfigurationError(
            f'Invalid UPSTAGE_MODEL: "{model}"\n\n'
            "Supported models:\n"
            "- solar-pro2 (recommended, latest)\n"
            "- solar-mini\n"
            "- solar-pro-2 (deprecated)\n"
            "- solar-pro (deprecated)\n"
            "- solar-1-mini-chat (deprecated)\n"
            "- solar-1-mini (deprecated)",
            env_var="UPSTAGE_MODEL",
        )

    base_url = env.get("UPSTAGE_BASE_URL") or DEFAULT_BASE_URL
    if not _is_valid_url(base_url):
        raise ConfigurationError(
            f'Invalid UPSTAGE_BASE_URL: "{base_url}"\n\n'
            f"Expected format: {DEFAULT_BASE_URL}\n"
            "Or your custom https endpoint URL",
            env_var="UPSTAGE_BASE_URL",
        )

    return SolarConfig(
        api_key=api_key,
        model=model,
        base_url=base_url.rstrip("/"),
        max_tokens=max_tokens,
        timeout=timeout,
        retry_count=retry_count,
    )


def setup_guide() -> str:
    return "\n".join([
        "Solar Code - Upstage API Setup Guide",
        "=====================================",
        "",
        "Required environment variables:",
        f"  {API_KEY_ENV}       Your Upstage API key (get from {SETUP_URL})",
        "",
        "Optional environment variables:",
        f"  UPSTAGE_MODEL         Model to use (default: {DEFAULT_SOLAR_MODEL})",
        f"  UPSTAGE_BASE_URL      API endpoint (default: {DEFAULT_BASE_URL})",
        f"  UPSTAGE_MAX_TOKENS    Max tokens per response (default: {SOLAR_MAX_TOKENS})",
        f"  UPSTAGE_TIMEOUT       Request timeout in ms (default: {DEFAULT_TIMEOUT_MS})",
        f"  UPSTAGE_RETRY_COUNT   Number of retries (default: {DEFAULT_RETRY_COUNT})",
        "",
        "Example .env file:",
        f"  {API_KEY_ENV}=up_xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx",
        f"  UPSTAGE_MODEL={DEFAULT_SOLAR_MODEL}",
        "  # Other variables use defaults if not specified",
        "",
        "Export directly (Linux/macOS):",
        f'  export {API_KEY_ENV}="up_xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx"',
        f'  export UPSTAGE_MODEL="{DEFAULT_SOLAR_MODEL}"',
        "",
        "Set temporarily (Windows):",
        f"  set {API_KEY_ENV}=up_xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx",
        f"  set UPSTAGE_MODEL={DEFAULT_SOLAR_MODEL}",
    ])
