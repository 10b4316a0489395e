"""Process-wide registries shared by concurrent module expansions."""

from __future__ import annotations

import re
import threading
from collections.abc import Iterable

from ccvariants.errors import MacroCollisionError

# Alphanumeric and _ characters are preserved, everything else becomes _.
_CHARS_NOT_FOR_MACRO = re.compile(r"[^a-zA-Z0-9_]+")


def versioning_macro_name(module_name: str) -> str:
    """Return the canonical versioning macro name, e.g. ``__LIBFOO_API__``."""
    macro = _CHARS_NOT_FOR_MACRO.sub("_", module_name).upper()
    return f"__{macro}_API__"


class VersioningMacroRegistry:
    """Maps versioning macro names to the module that owns them.

    Two stub-capable modules whose names sanitize to the same macro would
    silently share an ``__X_API__`` define; registration rejects that.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._owners: dict[str, str] = {}

    def register(self, module_name: str) -> str:
        macro = versioning_macro_name(module_name)
        with self._lock:
            owner = self._owners.setdefault(macro, module_name)
        if owner != module_name:
            raise MacroCollisionError(macro, module=module_name, owner=owner)
        return macro

    def owner_of(self, macro: str) -> str | None:
        with self._lock:
            return self._owners.get(macro)

    def snapshot(self) -> dict[str, str]:
        with self._lock:
            return dict(sorted(self._owners.items()))

    def reset(self) -> None:
        with self._lock:
            self._owners.clear()


class StubVersionsCache:
    """All declared stub versions per module.

    Published before a module's version split completes so that modules
    referencing its stubs can observe the final list.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._versions: dict[str, tuple[str, ...]] = {}

    def publish(self, module_name: str, versions: Iterable[str]) -> tuple[str, ...]:
        frozen = tuple(versions)
        with self._lock:
            self._versions[module_name] = frozen
        return frozen

    def lookup(self, module_name: str) -> tuple[str, ...] | None:
        with self._lock:
            return self._versions.get(module_name)

    def reset(self) -> None:
        with self._lock:
            self._versions.clear()
