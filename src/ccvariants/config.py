"""Platform-wide configuration consumed by expansion and ABI checks."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

DEFAULT_REFERENCE_DUMP_TOOL = (
    "$ANDROID_BUILD_TOP/development/vndk/tools/header-checker/utils/create_reference_dumps.py"
)
DEFAULT_CROSS_VERSION_GUIDE = (
    "https://android.googlesource.com/platform/development/+/master/vndk/tools/"
    "header-checker/README.md#configure-cross_version-abi-check"
)


Partition = Literal["platform", "vendor", "product"]


@dataclass(frozen=True, slots=True)
class PlatformConfig:
    """Release and device facts shared by every module in one build."""

    platform_sdk_version: int = 33
    platform_sdk_final: bool = True
    active_codenames: tuple[str, ...] = ()
    final_codenames: Mapping[str, int] = field(default_factory=dict)
    vndk_version: str = "current"
    binder_bitness: str = "64"
    arch: str = "arm64"
    primary_arch: str = "arm64"
    device_product: str | None = None
    abi_dump_root: Path = field(default_factory=lambda: Path("prebuilts/abi-dumps"))
    reference_dump_tool: str = DEFAULT_REFERENCE_DUMP_TOOL
    cross_version_guide: str = DEFAULT_CROSS_VERSION_GUIDE

    @property
    def is_primary_arch(self) -> bool:
        return self.arch == self.primary_arch
