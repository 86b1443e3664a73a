"""Demo and stack parameters and their `<NAME>=<VALUE>` raw form."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any


@dataclass
class Parameter:
    """A parameter as declared in demo and stack definitions."""

    name: str
    description: str
    default: str
    value: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Parameter:
        """Build a parameter from its deserialized definition."""
        fields = {}
        for key in ("name", "description", "default"):
            if key not in data:
                raise ValueError(f"missing field '{key}' in parameter")
            item = data[key]
            if not isinstance(item, str):
                raise ValueError(f"field '{key}' of parameter must be a string")
            fields[key] = item
        return cls(**fields)


@dataclass(frozen=True)
class RawParameter:
    """A parameter given by the user as `<NAME>=<VALUE>`."""

    name: str
    value: str

    def __str__(self) -> str:
        return f"{self.name}={self.value}"


class RawParameterErrorKind(Enum):
    INVALID_EQUAL_SIGN_COUNT = "invalid equal sign count in parameter, expected one"
    INVALID_PARAMETER_VALUE = "invalid parameter value, cannot be empty"
    INVALID_PARAMETER_NAME = "invalid parameter name, cannot be empty"
    INVALID_PARAMETER_INPUT = "invalid (empty) parameter input"


class RawParameterParseError(ValueError):
    """A raw parameter string could not be parsed."""

    def __init__(self, kind: RawParameterErrorKind) -> None:
        super().__init__(kind.value)
        self.kind = kind


class IntoParametersError(ValueError):
    """Raw parameters could not be turned into validated parameters."""


class InvalidParameterError(IntoParametersError):
    """A parameter was given that the definition does not declare."""

    def __init__(self, parameter: str, expected: str) -> None:
        super().__init__(f"invalid parameter '{parameter}', expected one of {expected}")
        self.parameter = parameter
        self.expected = expected


def parse_raw_parameter(text: str) -> RawParameter:
    """Parse a single `<NAME>=<VALUE>` string."""
    stripped = text.strip()
    if not stripped:
        raise RawParameterParseError(RawParameterErrorKind.INVALID_PARAMETER_INPUT)

    parts = stripped.split("=")
    if len(parts) > 2:
        raise RawParameterParseError(RawParameterErrorKind.INVALID_EQUAL_SIGN_COUNT)
    if len(parts) == 1:
        raise RawParameterParseError(RawParameterErrorKind.INVALID_PARAMETER_VALUE)

    name, value = parts
    if not name:
        raise RawParameterParseError(RawParameterErrorKind.INVALID_PARAMETER_NAME)
    if not value:
        raise RawParameterParseError(RawParameterErrorKind.INVALID_PARAMETER_VALUE)
    return RawParameter(name=name, value=value)


def parse_raw_parameters(value: str | Iterable[str]) -> list[RawParameter]:
    """Parse raw parameters from a space separated string or a list of strings."""
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise RawParameterParseError(RawParameterErrorKind.INVALID_PARAMETER_INPUT)
        return [parse_raw_parameter(part) for part in stripped.split(" ")]
    return [parse_raw_parameter(item) for item in value]


def into_params(
    value: str | Iterable[str], valid_parameters: Iterable[Parameter]
) -> dict[str, str]:
    """Validate raw parameters against declared ones, filling in defaults."""
    try:
        raw_parameters = parse_raw_parameters(value)
    except RawParameterParseError as err:
        raise IntoParametersError(f"raw parameter parse error: {err}") from err

    valid = list(valid_parameters)
    parameters = {p.name: p.default for p in valid}

    for raw in raw_parameters:
        if raw.name not in parameters:
            raise InvalidParameterError(
                parameter=raw.name,
                expected=", ".join(p.name for p in valid),
            )
        parameters[raw.name] = raw.value
    return parameters