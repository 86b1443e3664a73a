"""Rendering of templated manifests with parameter values."""

from __future__ import annotations

import secrets
import string
from collections.abc import Mapping
from typing import Any

import bcrypt
import jinja2

from stackcockpit.constants import PASSWORD_LENGTH

_BCRYPT_DEFAULT_COST = 12
_ALPHANUMERIC = string.ascii_letters + string.digits


class TemplateError(Exception):
    """A template could not be rendered."""


def random_password() -> str:
    """Return a random alphanumeric password of PASSWORD_LENGTH characters."""
    return "".join(secrets.choice(_ALPHANUMERIC) for _ in range(PASSWORD_LENGTH))


def bcrypt_hash(password: str) -> str:
    """Return the bcrypt hash of `password` with the default cost."""
    try:
        salt = bcrypt.gensalt(rounds=_BCRYPT_DEFAULT_COST)
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("ascii")
    except ValueError as err:
        raise TemplateError(f"Failed to create bcrypt hash: {err}") from err


def _random_password_function(*_args: Any, **_kwargs: Any) -> str:
    return random_password()


def _bcrypt_function(**kwargs: Any) -> str:
    if "password" not in kwargs:
        raise TemplateError("Parameter password missing")
    value = kwargs["password"]
    if not isinstance(value, str):
        raise TemplateError("Cant get value of password")
    return bcrypt_hash(value)


def render(content: str, parameters: Mapping[str, str]) -> str:
    """Render `content` with `parameters` as template variables."""
    environment = jinja2.Environment(
        autoescape=False,
        undefined=jinja2.StrictUndefined,
        keep_trailing_newline=True,
    )
    environment.globals["random_password"] = _random_password_function
    environment.globals["bcrypt"] = _bcrypt_function
    try:
        return environment.from_string(content).render(dict(parameters))
    except jinja2.TemplateError as err:
        raise TemplateError(str(err)) from err
    except TypeError as err:
        raise TemplateError(str(err)) from err