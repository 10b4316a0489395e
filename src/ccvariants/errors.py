"""Typed error model with stable, machine-readable error codes."""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum


class ErrorCode(StrEnum):
    """Stable error identifiers used across the expansion and ABI surfaces."""

    CONFIGURATION = "E_CONFIGURATION"
    USAGE = "E_USAGE"
    ABI_INCOMPATIBLE = "E_ABI_INCOMPATIBLE"


class VariantsError(Exception):
    """Base error class that carries code, optional hint, and context."""

    code: str
    hint: str | None
    context: Mapping[str, str]

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code.value
        self.hint = hint
        self.context = dict(context or {})

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.hint:
            parts.append(f"Hint: {self.hint}")
        if self.context:
            for k, v in self.context.items():
                if v:
                    parts.append(f"  {k}: {v}")
        return "\n".join(parts)

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "code": self.code,
            "message": str(self),
            "context": dict(self.context),
        }
        if self.hint is not None:
            payload["hint"] = self.hint
        return payload


class ConfigurationError(VariantsError):
    """A module declaration is invalid; processing of that module stops."""

    def __init__(
        self,
        message: str,
        *,
        module: str | None = None,
        property: str | None = None,
        value: str | None = None,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        merged: dict[str, str] = {}
        if module is not None:
            merged["module"] = module
        if property is not None:
            merged["property"] = property
        if value is not None:
            merged["value"] = value
        merged.update(context or {})
        super().__init__(message, code=ErrorCode.CONFIGURATION, hint=hint, context=merged)

    @property
    def module(self) -> str | None:
        return self.context.get("module")


class MacroCollisionError(ConfigurationError):
    """Two different modules derive the same versioning macro name."""

    def __init__(self, macro: str, *, module: str, owner: str) -> None:
        super().__init__(
            f"Macro name {macro!r} for versioning conflicts with macro name from module {owner!r}.",
            module=module,
            hint="Rename one of the modules so their sanitized names differ.",
            context={"macro": macro, "conflicting_module": owner},
        )
        self.macro = macro
        self.owner = owner


class UsageError(VariantsError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.USAGE, hint=hint, context=context)


class AbiIncompatibilityError(VariantsError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.ABI_INCOMPATIBLE, hint=hint, context=context)


__all__ = [
    "AbiIncompatibilityError",
    "ConfigurationError",
    "ErrorCode",
    "MacroCollisionError",
    "UsageError",
    "VariantsError",
]
