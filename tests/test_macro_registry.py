from concurrent.futures import ThreadPoolExecutor

import pytest

from ccvariants.errors import MacroCollisionError
from ccvariants.registry import StubVersionsCache, VersioningMacroRegistry, versioning_macro_name


@pytest.mark.parametrize(
    ("module", "macro"),
    [
        ("libfoo", "__LIBFOO_API__"),
        ("lib-foo.bar", "__LIB_FOO_BAR_API__"),
        ("libc++", "__LIBC__API__"),
        ("lib--x", "__LIB_X_API__"),
        ("LIB_9", "__LIB_9_API__"),
    ],
)
def test_versioning_macro_name(module: str, macro: str) -> None:
    assert versioning_macro_name(module) == macro


def test_register_is_idempotent_for_same_module(registry: VersioningMacroRegistry) -> None:
    assert registry.register("libfoo") == "__LIBFOO_API__"
    assert registry.register("libfoo") == "__LIBFOO_API__"
    assert registry.snapshot() == {"__LIBFOO_API__": "libfoo"}


def test_register_rejects_colliding_module(registry: VersioningMacroRegistry) -> None:
    registry.register("lib-foo")
    with pytest.raises(MacroCollisionError) as excinfo:
        registry.register("lib.foo")
    assert excinfo.value.owner == "lib-foo"
    assert excinfo.value.module == "lib.foo"
    assert registry.owner_of("__LIB_FOO_API__") == "lib-foo"


def test_reset_clears_registry(registry: VersioningMacroRegistry) -> None:
    registry.register("lib-foo")
    registry.reset()
    assert registry.register("lib.foo") == "__LIB_FOO_API__"


def test_concurrent_registration_has_exactly_one_owner(registry: VersioningMacroRegistry) -> None:
    names = [f"lib{sep}foo" for sep in "-._+~!" * 4]

    def _register(name: str) -> str | None:
        try:
            registry.register(name)
        except MacroCollisionError:
            return None
        return name

    with ThreadPoolExecutor(max_workers=8) as pool:
        winners = {name for name in pool.map(_register, names) if name is not None}

    assert len(winners) == 1
    assert registry.snapshot() == {"__LIB_FOO_API__": winners.pop()}


def test_stub_versions_cache_publish_and_lookup(versions_cache: StubVersionsCache) -> None:
    assert versions_cache.lookup("libfoo") is None
    assert versions_cache.publish("libfoo", ["29", "current"]) == ("29", "current")
    assert versions_cache.lookup("libfoo") == ("29", "current")
    versions_cache.reset()
    assert versions_cache.lookup("libfoo") is None
