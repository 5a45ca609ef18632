"""\
Ludmila's Validation Middleware
===============================

Author: Akshay Mestry <xa@mes3.dev>
Created on: 18 October, 2026
Last updated on: 18 October, 2026

The built-in ``validation`` middleware checks the ``body``, ``query``
and ``params`` of a request against per-section rules using
``pydantic``. Each section is either a ``BaseModel`` subclass or a
mapping of field names to annotations::

    {
        "body": {
            "email": str,
            "age": (int, 0),          # optional, defaults to 0
            "nickname": (str | None, None),
        },
        "params": {"id": int},
    }

Mapping sections reject unknown fields. Validated and coerced values
replace the raw ones on the request, so ``:id`` above resolves to an
``int`` by the time the controller runs.
"""

from __future__ import annotations

import typing as t
from collections.abc import Mapping

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import ValidationError
from pydantic import create_model

from ludmila.exceptions import ApplicationError

if t.TYPE_CHECKING:
    from ludmila.wrappers import Request
    from ludmila.wrappers import Response

SECTIONS: tuple[str, ...] = ("body", "query", "params")


def build_model(section: str, rule: t.Any) -> type[BaseModel]:
    """Turn one section's rule into a pydantic model.

    :raises TypeError: When the rule is neither a model nor a mapping.
    """
    if isinstance(rule, type) and issubclass(rule, BaseModel):
        return rule
    if not isinstance(rule, Mapping):
        raise TypeError(
            f"Validation rules for {section!r} must be a mapping or a "
            f"pydantic model, got {type(rule).__name__}"
        )
    fields = {
        name: spec if isinstance(spec, tuple) else (spec, ...)
        for name, spec in rule.items()
    }
    return create_model(
        f"{section.title()}Rules",
        __config__=ConfigDict(extra="forbid"),
        **fields,
    )


def validation(
    rules: Mapping[str, t.Any] | None = None,
) -> t.Callable[..., None]:
    """Create a middleware validating requests against ``rules``.

    Models are built here, once per endpoint, so malformed rules fail
    while routes are registered.

    :param rules: Mapping of section name to its rule, defaults to
        ``None`` which lets every request through.
    :raises ValueError: For sections other than ``body``, ``query`` and
        ``params``.
    """
    models: dict[str, type[BaseModel]] = {}
    for section, rule in (rules or {}).items():
        if section not in SECTIONS:
            raise ValueError(f"Unknown validation section {section!r}")
        if rule is not None:
            models[section] = build_model(section, rule)

    def validate(
        request: Request, response: Response, next: t.Callable[..., None]
    ) -> None:
        details: list[dict[str, t.Any]] = []
        validated: dict[str, dict[str, t.Any]] = {}
        for section, model in models.items():
            payload = getattr(request, section)
            if payload is None:
                payload = {}
            try:
                instance = model.model_validate(payload)
            except ValidationError as err:
                details.extend(
                    {
                        "section": section,
                        "loc": list(error["loc"]),
                        "msg": error["msg"],
                        "type": error["type"],
                    }
                    for error in err.errors()
                )
            else:
                validated[section] = instance.model_dump()
        if details:
            raise ApplicationError.bad_request(
                "Validation failed", details=details
            )
        for section, values in validated.items():
            setattr(request, section, values)
        next()

    return validate
