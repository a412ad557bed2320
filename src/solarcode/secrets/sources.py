# src/solarcode/secrets/sources.py

from __future__ import annotations
from typing import Protocol, Optional, Dict, Iterable, List, Mapping, Union
import os, getpass

import keyring
from keyring.errors import KeyringError


class SecretSource(Protocol):
    def get(self, service: str) -> Optional[str]: ...


class EnvSource:
    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        self._environ = environ

    def get(self, service: str) -> Optional[str]:
        env = os.environ if self._environ is None else self._environ
        # 1) exact env var name, 2) derived name (upstage -> UPSTAGE_API_KEY)
        for key in (service, f"{service.upper()}_API_KEY"):
            val = env.get(key)
            if val and val.strip():
                return val.strip()
        return None


class SystemKeyringSource:
    def get(self, service: str) -> Optional[str]:
        try:
            cred = keyring.get_credential(service, None)
            if cred and getattr(cred, "password", None):
                return cred.password.strip()
            for account in ("UPSTAGE_API_KEY", "API_KEY", "default", getpass.getuser()):
                val = keyring.get_password(service, account)
                if val:
                    return val.strip()
        except KeyringError:
            # No usable backend on this machine (headless CI, containers)
            return None
        return None


_ALLOWED_METHODS = {"env", "keyring"}


def normalise_methods(method: Union[str, Iterable[str]]) -> List[str]:
    methods = [method] if isinstance(method, str) else list(method)
    norm = []
    for m in methods:
        key = str(m).strip().lower()
        if key not in _ALLOWED_METHODS:
            raise ValueError(f"Unknown secrets method '{m}'. Allowed: {sorted(_ALLOWED_METHODS)}")
        if key not in norm:
            norm.append(key)
    return norm


def build_secret_sources(
    method: Union[str, Iterable[str]], environ: Optional[Mapping[str, str]] = None
) -> List[SecretSource]:
    sources: List[SecretSource] = []
    for name in normalise_methods(method):
        if name == "env":
            sources.append(EnvSource(environ))
        elif name == "keyring":
            sources.append(SystemKeyringSource())
    return sources


class SecretsResolver:
    """
    Resolve secrets using one or more methods in order.
    mapping: per-provider map of names -> service/env-key
      e.g. { "solar": { "api_key": "UPSTAGE_API_KEY" } } or { "solar": { "api_key": "upstage" } }
    """
    def __init__(
        self,
        method: Union[str, Iterable[str]] = "env",
        mapping: Dict[str, Dict[str, str]] | None = None,
        environ: Optional[Mapping[str, str]] = None,
    ):
        self._sources = build_secret_sources(method, environ)
        self._map = mapping or {}

    def secret(self, provider: str, name: str = "api_key") -> Optional[str]:
        service = self._map.get(provider, {}).get(name, provider)
        for src in self._sources:
            val = src.get(service)
            if val:
                return val
        return None
