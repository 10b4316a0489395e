"""API level parsing and ordering."""

from __future__ import annotations

from dataclasses import dataclass

from ccvariants.config import PlatformConfig
from ccvariants.errors import ConfigurationError

FUTURE_API_LEVEL_INT = 10000
FUTURE_API_LEVEL_NAME = "current"
# Active codenames order below the future level, in declaration order.
PREVIEW_API_LEVEL_BASE = 9000


@dataclass(frozen=True, slots=True)
class ApiLevel:
    """A comparable API level.

    ``value`` is the canonical spelling (``"29"``, ``"current"`` or a preview
    codename) and ``number`` the value used for ordering.
    """

    value: str
    number: int
    is_preview: bool = False

    def __str__(self) -> str:
        return self.value

    @property
    def is_future(self) -> bool:
        return self.number == FUTURE_API_LEVEL_INT

    def less_than_or_equal_to(self, other: ApiLevel) -> bool:
        return self.number <= other.number

    def final_or_preview_int(self) -> int:
        """Value exported in versioning macros; previews export the future level."""
        if self.is_preview:
            return FUTURE_API_LEVEL_INT
        return self.number


FUTURE_API_LEVEL = ApiLevel(
    value=FUTURE_API_LEVEL_NAME, number=FUTURE_API_LEVEL_INT, is_preview=True
)


def api_level_from_user(raw: str, platform: PlatformConfig) -> ApiLevel:
    """Resolve a user-supplied API level spelling."""
    if not raw:
        raise ConfigurationError("API level must not be empty.", value=raw)
    if raw == FUTURE_API_LEVEL_NAME:
        return FUTURE_API_LEVEL
    if raw.isdigit():
        number = int(raw)
        return ApiLevel(value=str(number), number=number)
    if raw in platform.final_codenames:
        number = platform.final_codenames[raw]
        return ApiLevel(value=str(number), number=number)
    if raw in platform.active_codenames:
        number = PREVIEW_API_LEVEL_BASE + platform.active_codenames.index(raw)
        return ApiLevel(value=raw, number=number, is_preview=True)
    raise ConfigurationError(
        f"Unrecognized API level {raw!r}.",
        value=raw,
        hint="Use a numeric SDK version, 'current', or a known codename.",
    )


def is_future_spelling(raw: str) -> bool:
    """Whether ``raw`` names the future level symbolically or numerically."""
    return raw in (FUTURE_API_LEVEL_NAME, str(FUTURE_API_LEVEL_INT))


def codename_api_levels(platform: PlatformConfig) -> dict[str, int]:
    """Ordering number of every codename the platform knows about."""
    levels = dict(platform.final_codenames)
    for raw in platform.active_codenames:
        levels[raw] = api_level_from_user(raw, platform).number
    return levels
