"""Shared test fixtures."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from ccvariants.abi import InProcessAbiTool
from ccvariants.config import PlatformConfig
from ccvariants.observability import StructuredLogger
from ccvariants.registry import StubVersionsCache, VersioningMacroRegistry


@pytest.fixture
def platform(tmp_path: Path) -> PlatformConfig:
    """Finalized SDK 33 arm64 device with dumps rooted under tmp_path."""
    return PlatformConfig(
        platform_sdk_version=33,
        platform_sdk_final=True,
        abi_dump_root=tmp_path / "prebuilts" / "abi-dumps",
    )


@pytest.fixture
def registry() -> VersioningMacroRegistry:
    return VersioningMacroRegistry()


@pytest.fixture
def versions_cache() -> StubVersionsCache:
    return StubVersionsCache()


@pytest.fixture
def logger() -> StructuredLogger:
    return StructuredLogger()


@pytest.fixture
def abi_tool() -> InProcessAbiTool:
    return InProcessAbiTool()


@pytest.fixture
def write_json() -> Callable[[Path, dict[str, Any]], Path]:
    def _write(path: Path, payload: dict[str, Any]) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload), encoding="utf-8")
        return path

    return _write
