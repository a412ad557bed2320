from __future__ import annotations
from typing import Dict, Type, Callable, List
from importlib import import_module


class ProviderRegistry:
    _classes: Dict[str, Type] = {}

    @classmethod
    def register(cls, name: str) -> Callable[[Type], Type]:
        name = name.lower()
        def deco(klass: Type) -> Type:
            cls._classes[name] = klass
            return klass
        return deco

    @classmethod
    def get(cls, name: str) -> Type:
        key = name.lower()
        if key not in cls._classes:
            raise KeyError(f"Provider '{name}' not registered (known: {cls.names()})")
        return cls._classes[key]

    @classmethod
    def names(cls) -> List[str]:
        return sorted(cls._classes)

    @classmethod
    def ensure_imports(cls) -> None:
        """
        Import built-in generators so their @register decorators run.
        Call once at bootstrap before get().
        """
        import_module("solarcode.providers.solar_adapter")
        import_module("solarcode.providers.echo")
