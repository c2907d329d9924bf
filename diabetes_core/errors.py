"""Exceptions raised by the diabetes prediction core."""
from __future__ import annotations

from typing import Any, Sequence


class DiabetesServiceError(Exception):
    """Base class for every error raised by this package."""


class InvalidInput(DiabetesServiceError):
    """A request value failed validation. Recoverable per request."""

    def __init__(self, feature: str, value: Any, message: str):
        super().__init__(message)
        self.feature = feature
        self.value = value

    def to_dict(self) -> dict:
        return {"feature": self.feature, "value": self.value, "message": str(self)}


class InvalidCategory(InvalidInput):
    def __init__(self, feature: str, value: Any, allowed: Sequence[str]):
        self.allowed = tuple(allowed)
        super().__init__(
            feature,
            value,
            f"Invalid value {value!r} for {feature}; allowed values: {list(self.allowed)}",
        )

    def to_dict(self) -> dict:
        payload = super().to_dict()
        payload["allowed"] = list(self.allowed)
        return payload


class InvalidNumber(InvalidInput):
    def __init__(self, feature: str, value: Any):
        super().__init__(feature, value, f"Value {value!r} for {feature} is not a finite number")


class ConfigurationError(DiabetesServiceError):
    """Data or configuration defect found while building startup state."""


class UnknownFeature(ConfigurationError, KeyError):
    def __init__(self, name: str):
        super().__init__(f"Unknown feature: {name!r}")
        self.name = name

    def __str__(self) -> str:
        return f"Unknown feature: {self.name!r}"


class EmptyColumn(ConfigurationError):
    def __init__(self, name: str):
        super().__init__(f"Column {name!r} has no non-missing observations; no default exists")
        self.name = name


class SchemaMismatch(DiabetesServiceError):
    """Model input disagrees with what the trained artefact was fit on."""


__all__ = [
    "ConfigurationError",
    "DiabetesServiceError",
    "EmptyColumn",
    "InvalidCategory",
    "InvalidInput",
    "InvalidNumber",
    "SchemaMismatch",
    "UnknownFeature",
]
