from __future__ import annotations
import copy
from pathlib import Path
from typing import Any, Dict, Optional

import structlog
from dotenv import load_dotenv

from .config_loader import DEFAULT_CONFIG_PATH, DEFAULT_SETTINGS, load_config
from .core.chat_session import ChatSession
from .core.errors import ConfigurationError
from .core.types import GenerateContentConfig
from .providers.logging_generator import LoggingContentGenerator
from .providers.registry import ProviderRegistry
from .resilience.resilient_provider import ResilientContentGenerator, ResiliencePolicy
from .secrets.sources import SecretsResolver
from .config import DEFAULT_SECRETS_MAPPING


def build_app(
    config_path: Optional[Path] = None,
    *,
    provider: Optional[str] = None,
    stream: Optional[bool] = None,
    json_output: bool = False,
) -> Dict[str, Any]:
    """
    Composition root: load .env and optional YAML settings, build the provider
    (wrapped with logging and resilience) and a chat session around it.
    Returns: dict with cfg, provider, session.
    Raises ConfigurationError before any network call when setup is incomplete.
    """
    load_dotenv()
    log = structlog.get_logger("solarcode")

    if config_path is None and DEFAULT_CONFIG_PATH.exists():
        config_path = DEFAULT_CONFIG_PATH
    if config_path is not None:
        cfg = load_config(Path(config_path))
    else:
        cfg = copy.deepcopy(DEFAULT_SETTINGS)

    # ----- Overrides from the command line -----
    if provider:
        cfg["model"]["provider"] = provider.lower()
    if stream is not None:
        cfg["runtime"]["stream"] = stream

    # ----- Providers -----
    ProviderRegistry.ensure_imports()  # make sure built-ins register

    provider_name = cfg["model"]["provider"]
    provider_cfg = dict((cfg.get("providers") or {}).get(provider_name, {}) or {})

    secrets_cfg = cfg.get("secrets") or {}
    provider_cfg["secrets"] = SecretsResolver(
        method=secrets_cfg.get("method", "env"),
        mapping=secrets_cfg.get("mapping") or DEFAULT_SECRETS_MAPPING,
    )

    try:
        Adapter = ProviderRegistry.get(provider_name)
    except KeyError as e:
        raise ConfigurationError(str(e.args[0])) from None
    inner = Adapter.create(provider_cfg=provider_cfg, logger=log)

    retry_count = getattr(getattr(inner, "config", None), "retry_count", 0)
    generator = ResilientContentGenerator(
        LoggingContentGenerator(inner, logger=log),
        policy=ResiliencePolicy.from_retry_count(retry_count),
        logger=log,
    )

    # ----- Session -----
    runtime = cfg.get("runtime") or {}
    gen_config = GenerateContentConfig(
        temperature=runtime.get("temperature"),
        response_mime_type="application/json" if json_output else None,
    )
    session = ChatSession(model=generator, system_prompt=cfg.get("system_prompt"), config=gen_config)

    return {
        "cfg": cfg,
        "provider": generator,
        "inner": inner,
        "session": session,
    }
