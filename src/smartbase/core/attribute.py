"""Attribute engine (source of truth).

Declarative, inheritable attributes with getter/setter/validator pipelines
and change notification. ``Attribute`` is a mixin; it relies on the host
also providing ``trigger`` (see ``Events``).

Specs
-----
Classes declare attributes in an ``attrs`` dict. Each entry is normalized
to an ``AttrSpec``:

- a dict holding at least one of ``value``, ``getter``, ``setter``,
  ``validator`` is a spec (other keys are ignored);
- anything else is a bare default, sugar for ``{"value": <it>}``.

``merge_attr_specs(layers)`` overlays spec layers from least to most derived.
Per key, each field supplied by the newer layer wins. When both ``value``
fields are plain dicts they merge recursively; any other value replaces the
older one. A child that only supplies ``setter`` keeps the inherited
default and replaces the inherited setter.

Storage
-------
``init_attrs(config)`` builds the per-instance ``self.attrs`` (name ->
``{"value": ...}``); it shadows the class-level ``attrs`` declaration. When
no storage exists yet (``Attribute`` used without ``Base``), the first
accessor call builds it from the declared defaults:

1. every merged default is cloned (``clone_value``), so instances never
   share mutable defaults with the class or with each other;
2. config values are overlaid: a dict over a dict default merges into the
   clone, anything else is stored verbatim (caller's reference kept);
   unknown keys are stored as well;
3. attributes whose spec has a setter or validator are pushed through
   ``set(..., silent=True)`` with their resolved value, so setters normalize
   defaults and config alike and rejected config values leave the default.

No change notification happens while storage is being built, including
``set`` calls made by setters fanning out to other attributes.

Accessors
---------
Getters are called like methods: ``(instance, value, name)``, trimmed to
the parameters they declare (``lambda self: ...`` computes from other
attributes). Validators and setters declaring a single parameter receive
the value alone (``lambda value: ...``); otherwise they are called like
getters.

- ``get(name)``: ``getter(instance, stored)`` when a getter exists, else the
  stored value; ``None`` for unknown names.
- ``set(name, value, options=None, **kwargs)`` / ``set(mapping, ...)``:
  validator -> setter -> strict-equality check -> store -> unless silent,
  ``_onChange<Name>(value, prev, name)`` then
  ``trigger("change:<name>", value, prev, name)``. A rejected value calls
  ``options["error"](name, value)`` when given; it never raises. Mapping
  keys are processed in order and independently.
- ``change(options=None, **kwargs)``: re-announces every attribute whose
  resolved value is not blank, with ``prev=None`` (``names`` option limits
  it to a subset).

Options are merged over the class-level ``set_defaults`` with
``SmartOptions``.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Optional

from smartseeds import SmartOptions

from .utils import (
    call_value_hook,
    call_with_arity,
    clone_value,
    is_blank,
    is_plain_dict,
    is_same_value,
    merge_dicts,
    split_names,
    ucfirst,
)

__all__ = [
    "AttrSpec",
    "Attribute",
    "SPEC_KEYS",
    "change_method_name",
    "merge_attr_specs",
    "normalize_attr_specs",
]

logger = logging.getLogger("smartbase.attribute")

SPEC_KEYS = ("value", "getter", "setter", "validator")
CHANGE_METHOD_PREFIX = "_onChange"

_MISSING = object()


def change_method_name(name: str) -> str:
    return CHANGE_METHOD_PREFIX + ucfirst(name)


@dataclass
class AttrSpec:
    """Normalized descriptor of one attribute."""

    value: Any = _MISSING
    getter: Optional[Callable] = None
    setter: Optional[Callable] = None
    validator: Optional[Callable] = None

    @classmethod
    def normalize(cls, raw: Any) -> "AttrSpec":
        if isinstance(raw, AttrSpec):
            return raw
        if is_plain_dict(raw) and any(key in raw for key in SPEC_KEYS):
            return cls(
                value=raw.get("value", _MISSING),
                getter=raw.get("getter"),
                setter=raw.get("setter"),
                validator=raw.get("validator"),
            )
        return cls(value=raw)

    @property
    def has_value(self) -> bool:
        return self.value is not _MISSING

    @property
    def default(self) -> Any:
        return self.value if self.has_value else None

    @property
    def guarded(self) -> bool:
        return self.setter is not None or self.validator is not None

    def overlay(self, newer: "AttrSpec") -> "AttrSpec":
        value = self.value
        if newer.has_value:
            if is_plain_dict(value) and is_plain_dict(newer.value):
                value = merge_dicts(value, newer.value)
            else:
                value = newer.value
        return AttrSpec(
            value=value,
            getter=newer.getter or self.getter,
            setter=newer.setter or self.setter,
            validator=newer.validator or self.validator,
        )


def normalize_attr_specs(raw_attrs: Optional[Mapping]) -> Dict[str, AttrSpec]:
    if not raw_attrs:
        return {}
    if not isinstance(raw_attrs, Mapping):
        raise TypeError(f"attrs must be a mapping, got {type(raw_attrs).__name__}")
    return {name: AttrSpec.normalize(raw) for name, raw in raw_attrs.items()}


def merge_attr_specs(layers: Iterable[Mapping[str, AttrSpec]]) -> Dict[str, AttrSpec]:
    """Overlay spec layers ordered from least to most derived."""
    merged: Dict[str, AttrSpec] = {}
    for layer in layers:
        for name, spec in layer.items():
            current = merged.get(name)
            merged[name] = spec if current is None else current.overlay(spec)
    return merged


class Attribute:
    """Mixin implementing ``get``/``set``/``change`` over ``self.attrs``."""

    attrs: Dict[str, Any] = {}
    set_defaults: Dict[str, Any] = {"silent": False, "error": None}

    # ------------------------------------------------------------------
    # Specs and storage
    # ------------------------------------------------------------------
    def _attr_specs(self) -> Dict[str, AttrSpec]:
        """Merged specs for this instance's class (uncached fallback)."""
        layers = (normalize_attr_specs(vars(klass).get("attrs")) for klass in reversed(type(self).__mro__))
        return merge_attr_specs(layers)

    def _attr_storage(self) -> Dict[str, Dict[str, Any]]:
        storage = vars(self).get("attrs")
        if storage is None:
            self.init_attrs()
            storage = vars(self)["attrs"]
        return storage

    def init_attrs(self, config: Optional[Mapping] = None) -> None:
        if config is not None and not isinstance(config, Mapping):
            raise TypeError(f"config must be a mapping, got {type(config).__name__}")
        specs = self._attr_specs()
        storage: Dict[str, Dict[str, Any]] = {
            name: {"value": clone_value(spec.default)} for name, spec in specs.items()
        }
        resolved: Dict[str, Any] = {}
        for name, value in (config or {}).items():
            current = storage.get(name)
            if current is not None and is_plain_dict(current["value"]) and is_plain_dict(value):
                value = merge_dicts(current["value"], value)
            resolved[name] = value
            spec = specs.get(name)
            if spec is None or not spec.guarded:
                storage[name] = {"value": value}
        self.attrs = storage

        self._initializing_attrs = True
        try:
            for name, spec in specs.items():
                if spec.guarded:
                    value = resolved.get(name, storage[name]["value"])
                    self.set(name, value, silent=True)
        finally:
            self._initializing_attrs = False

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def get(self, name: str) -> Any:
        entry = self._attr_storage().get(name)
        value = entry["value"] if entry is not None else None
        spec = self._attr_specs().get(name)
        if spec is not None and spec.getter is not None:
            return call_with_arity(spec.getter, self, value, name)
        return value

    def set(
        self,
        name: Any,
        value: Any = None,
        options: Optional[Mapping] = None,
        **kwargs: Any,
    ) -> "Attribute":
        """Set one attribute, or several when ``name`` is a mapping.

        With a mapping, the second positional argument may carry the
        options: ``set({"x": 1}, {"silent": True})``.
        """
        if isinstance(name, Mapping):
            if options is None and isinstance(value, Mapping):
                options = value
            items = list(name.items())
        else:
            items = [(name, value)]
        opts = SmartOptions(dict(options or {}, **kwargs), defaults=self.set_defaults)
        silent = bool(getattr(opts, "silent", False)) or getattr(self, "_initializing_attrs", False)
        on_error = getattr(opts, "error", None)
        specs = self._attr_specs()
        for key, item in items:
            self._set_one(key, item, specs.get(key), silent=silent, on_error=on_error)
        return self

    def change(self, options: Optional[Mapping] = None, **kwargs: Any) -> "Attribute":
        """Announce every non-blank attribute as changed (``prev`` is ``None``).

        Meant for widgets that apply their attributes lazily, typically from
        a ``render`` step. Blank values (``None``, empty str/list/tuple/dict)
        are skipped; the ``names`` option restricts the announcement.
        """
        opts = SmartOptions(dict(options or {}, **kwargs), defaults={"names": None})
        names = getattr(opts, "names", None)
        storage = self._attr_storage()
        selected = split_names(names) if names else list(storage)
        for name in selected:
            if name not in storage:
                continue
            value = self.get(name)
            if is_blank(value):
                continue
            self._notify_change(name, value, None)
        return self

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------
    def _set_one(
        self,
        name: str,
        value: Any,
        spec: Optional[AttrSpec],
        *,
        silent: bool,
        on_error: Optional[Callable],
    ) -> None:
        if spec is not None and spec.validator is not None:
            if not call_value_hook(spec.validator, self, value, name):
                logger.debug(
                    "%s rejected %r for attribute %r", type(self).__name__, value, name
                )
                if on_error is not None:
                    call_with_arity(on_error, name, value)
                return
        if spec is not None and spec.setter is not None:
            value = call_value_hook(spec.setter, self, value, name)
        # Read after the setter: a setter may itself write attributes.
        storage = self._attr_storage()
        entry = storage.get(name)
        if entry is not None and is_same_value(value, entry["value"]):
            return
        prev = entry["value"] if entry is not None else None
        if entry is None:
            storage[name] = {"value": value}
        else:
            entry["value"] = value
        if not silent:
            self._notify_change(name, value, prev)

    def _notify_change(self, name: str, value: Any, prev: Any) -> None:
        method = getattr(self, change_method_name(name), None)
        if callable(method):
            call_with_arity(method, value, prev, name)
        self.trigger(f"change:{name}", value, prev, name)  # type: ignore[attr-defined]
