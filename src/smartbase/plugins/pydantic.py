"""Pydantic-typed attributes (source of truth).

Rebuild exactly from this contract; no hidden behaviour.

Responsibilities
----------------
- ``typed(annotation, value=..., *, strict=False, getter=None, setter=None,
  validator=None)`` returns an attribute spec dict usable in any ``attrs``
  block. It builds one ``pydantic.TypeAdapter`` for ``annotation``.
- The returned validator accepts a value when the adapter validates it (then
  defers to the user ``validator``, if any). A rejected value follows the
  normal failure path of ``set``: storage untouched, ``error`` callback
  invoked, nothing raised.
- The returned setter stores the adapter's coerced value (``"2"`` -> ``2`` for
  ``int`` unless ``strict``), then applies the user ``setter``, if any.
- ``value`` omitted means no default: the attribute starts as ``None`` and
  ``None`` stays an accepted value, passed through without coercion.

Dependencies
------------
``pydantic`` (v2), a core dependency of SmartBase.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional

from pydantic import TypeAdapter, ValidationError

from smartbase.core.utils import call_value_hook

__all__ = ["typed"]

_NO_DEFAULT = object()


def typed(
    annotation: Any,
    value: Any = _NO_DEFAULT,
    *,
    strict: bool = False,
    getter: Optional[Callable] = None,
    setter: Optional[Callable] = None,
    validator: Optional[Callable] = None,
) -> Dict[str, Any]:
    """Return an attribute spec validated and coerced through Pydantic."""
    adapter = TypeAdapter(annotation)

    def validate(host: Any, candidate: Any, name: str) -> bool:
        if candidate is None and value is _NO_DEFAULT:
            return True
        try:
            adapter.validate_python(candidate, strict=strict)
        except ValidationError:
            return False
        if validator is not None:
            return bool(call_value_hook(validator, host, candidate, name))
        return True

    def coerce(host: Any, candidate: Any, name: str) -> Any:
        if candidate is not None or value is not _NO_DEFAULT:
            candidate = adapter.validate_python(candidate, strict=strict)
        if setter is not None:
            candidate = call_value_hook(setter, host, candidate, name)
        return candidate

    spec: Dict[str, Any] = {"validator": validate, "setter": coerce}
    if value is not _NO_DEFAULT:
        spec["value"] = value
    if getter is not None:
        spec["getter"] = getter
    return spec
