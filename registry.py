"""
registry.py
-----------
This module contains the central module registry which holds every
self-registered module of the application, keyed by name.

Modules declare themselves with the ``register_module`` decorator. They never
touch the registry object directly; ``get_registry()`` creates it on first use,
so it does not matter which file gets imported first.
"""

import inspect
import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)


class RegistryError(Exception):
    """Base class for registration problems."""


class DuplicateModuleError(RegistryError):
    pass


class RegistrySealedError(RegistryError):
    pass


class InvalidModuleError(RegistryError, TypeError):
    pass


class Module(ABC):
    """
    Base class for a module. Subclasses implement ``run``, which receives the
    command-line parameters that follow the module name and returns the exit
    status for the process.
    """

    @abstractmethod
    def run(self, params: List[str]) -> int:
        ...


@dataclass(frozen=True)
class RegistryEntry:
    name: str
    factory: Callable[[], Module]
    description: str
    # Menu path, e.g. ("Samples",)
    category: Tuple[str, ...] = ()


class ModuleRegistry:
    """
    Mapping of module name to RegistryEntry.

    Registration is expected to happen once at startup, before the dispatcher
    reads anything. ``seal()`` marks the end of that phase; registering
    afterwards raises RegistrySealedError.
    """

    def __init__(self):
        self._entries = {}
        self._lock = threading.Lock()
        self._sealed = False

    def register(self, name, factory, description, category=()):
        """
        Insert an entry under ``name``. A name can only be registered once;
        a second registration raises DuplicateModuleError instead of replacing
        the first one.
        """
        if not name or not name.strip():
            raise RegistryError("Module name cannot be empty")
        entry = RegistryEntry(name, factory, description, tuple(category))
        with self._lock:
            if self._sealed:
                raise RegistrySealedError(
                    f"Cannot register '{name}': registration phase is over"
                )
            existing = self._entries.get(name)
            if existing is not None:
                raise DuplicateModuleError(
                    f"Module '{name}' is already registered by "
                    f"{_describe(existing.factory)}; refusing {_describe(factory)}"
                )
            self._entries[name] = entry
        logger.debug("Registered module '%s' (%s)", name, _describe(factory))
        return entry

    def lookup(self, name) -> Optional[RegistryEntry]:
        return self._entries.get(name)

    def entries(self) -> List[RegistryEntry]:
        return [self._entries[name] for name in sorted(self._entries)]

    def list(self) -> List[Tuple[str, str]]:
        """Return (name, description) pairs sorted by name."""
        return [(entry.name, entry.description) for entry in self.entries()]

    def seal(self):
        with self._lock:
            if not self._sealed:
                self._sealed = True
                logger.debug("Registry sealed with %d module(s)", len(self._entries))

    @property
    def sealed(self):
        return self._sealed

    def __contains__(self, name):
        return name in self._entries

    def __len__(self):
        return len(self._entries)


_registry = None
_registry_lock = threading.Lock()


def get_registry() -> ModuleRegistry:
    """Return the process-wide registry, creating it on first call."""
    global _registry
    if _registry is None:
        with _registry_lock:
            if _registry is None:
                _registry = ModuleRegistry()
    return _registry


def register_module(name, description, category=(), registry=None):
    """
    Class decorator registering a Module subclass under ``name``:

        @register_module("mymod", "My self-registering module")
        class MyModule(Module):
            def run(self, params):
                return 0

    The class itself is stored as the factory. Decorating anything that is
    not a concrete Module subclass (one implementing ``run``) raises
    InvalidModuleError at import time.
    """
    def decorator(cls):
        if not (isinstance(cls, type) and issubclass(cls, Module)):
            raise InvalidModuleError(
                f"Cannot register {cls!r} as '{name}': not a Module subclass"
            )
        if inspect.isabstract(cls):
            missing = ", ".join(sorted(cls.__abstractmethods__))
            raise InvalidModuleError(
                f"Cannot register {cls.__qualname__} as '{name}': abstract method(s) {missing} not implemented"
            )
        target = registry if registry is not None else get_registry()
        target.register(name, cls, description, category)
        return cls
    return decorator


def _describe(factory):
    return f"{getattr(factory, '__module__', '?')}.{getattr(factory, '__qualname__', repr(factory))}"
