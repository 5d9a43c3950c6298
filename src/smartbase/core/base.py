"""Class builder and ``Base`` root class (source of truth).

``Base`` composes the three core mixins (``Attribute``, ``Aspect``,
``Events``) and adds the class-building and lifecycle logic described here.

Class descriptors
-----------------
Every ``Base`` subclass gets a ``ClassDescriptor`` stored in its own
``__dict__`` under ``DESCRIPTOR_ATTR_NAME``, built by ``__init_subclass__``
(class statements and ``extend`` go through the same path):

- ``parent``: descriptor of the first base, ``None`` for ``Base`` itself.
- ``own_attr_specs``: the class's own ``attrs`` block, normalized.
- ``own_methods``: callables defined directly on the class.
- ``handler_keys``: ``"onChange<Attr>" -> attr`` for every attribute
  declared anywhere in the MRO, so declarative keys resolve to exact
  attribute names (``onChangeXY`` -> ``xY``).
- ``merged_attr_specs``: computed on first access by walking the MRO oldest
  to newest (mixins included), then memoized for the class.

``superclass`` on each subclass is its first base, for explicit delegation:
``Child.superclass.initialize(self, config)``.

``extend(definition=None, **members)``
--------------------------------------
Builds a subclass with ``type(cls)``. Reserved definition keys:

- ``implements``: a class or list of classes/dicts. Classes become extra
  bases; dict members are copied in unless the definition defines them,
  and a dict's ``attrs`` are merged under the definition's own ``attrs``.
- ``statics``: dict of class-level members; plain functions are wrapped in
  ``staticmethod``.
- ``__name__``: class name (defaults to ``<Parent>Sub``).
- ``__module__``: owning module (defaults to the caller's module).

Every other key becomes a class member (functions become methods).

Construction
------------
``Sub(*args, **kwargs)``:

1. assigns ``cid`` and empty ``attrs``/``plugins``;
2. calls ``initialize(*args, **kwargs)``; ``Base.initialize(config=None,
   **options)`` builds attribute storage from ``config`` (keyword options
   are merged in). Subclasses may inspect/mutate the config first and must
   delegate to keep attribute support;
3. binds declarative handlers found in storage (see ``resolve_handler_key``)
   and removes those keys from storage.

Errors raised by ``initialize`` propagate to the caller.

Plugins
-------
``Base.register_plugin(plugin_class, name=None)`` fills a global registry;
``plug(code, **config)`` instantiates and installs a plugin on one instance;
``unplug(code)`` removes it; ``destroy()`` uninstalls all of them.
"""

from __future__ import annotations

import inspect
import itertools
import logging
import re
import sys
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple, Type

from smartseeds.typeutils import safe_is_instance

from smartbase.plugins._base_plugin import BasePlugin

from .aspect import Aspect
from .attribute import AttrSpec, Attribute, merge_attr_specs, normalize_attr_specs
from .errors import PluginError
from .events import EVENT_ERROR_POLICIES, Events
from .utils import lcfirst, ucfirst

__all__ = ["Base", "ClassDescriptor", "DESCRIPTOR_ATTR_NAME", "describe", "is_base_instance"]

logger = logging.getLogger("smartbase")

DESCRIPTOR_ATTR_NAME = "__smartbase_descriptor__"
_HANDLER_KEY = re.compile(r"^(on|before|after)([A-Z]\w*)$")
_CHANGE_WORD = "Change"

_PLUGIN_REGISTRY: Dict[str, Type[BasePlugin]] = {}
_cid_counter = itertools.count()


@dataclass
class ClassDescriptor:
    """Class-level metadata shared by every instance of one class."""

    cls: type
    parent: Optional["ClassDescriptor"]
    own_attr_specs: Dict[str, AttrSpec]
    own_methods: Dict[str, Callable]
    handler_keys: Dict[str, str] = field(default_factory=dict)
    _merged: Optional[Dict[str, AttrSpec]] = field(default=None, repr=False)

    @property
    def merged_attr_specs(self) -> Dict[str, AttrSpec]:
        if self._merged is None:
            self._merged = merge_attr_specs(_spec_layers(self.cls))
        return self._merged

    def resolve_handler_key(self, key: str) -> Optional[Tuple[str, str]]:
        """Map a declarative key to ``(kind, target)`` or ``None``.

        ``kind`` is ``"on"`` (target is an event name), ``"before"`` or
        ``"after"`` (target is a method name).
        """
        attr = self.handler_keys.get(key)
        if attr is not None:
            return "on", f"change:{attr}"
        match = _HANDLER_KEY.match(key)
        if match is None:
            return None
        kind, rest = match.groups()
        if kind == "on" and rest.startswith(_CHANGE_WORD) and rest[len(_CHANGE_WORD):][:1].isupper():
            return "on", f"change:{lcfirst(rest[len(_CHANGE_WORD):])}"
        return kind, lcfirst(rest)


def _spec_layers(cls: type):
    for klass in reversed(cls.__mro__):
        descriptor = vars(klass).get(DESCRIPTOR_ATTR_NAME)
        if descriptor is not None:
            yield descriptor.own_attr_specs
        else:
            yield normalize_attr_specs(vars(klass).get("attrs"))


def _build_descriptor(cls: type) -> ClassDescriptor:
    parent = describe(cls.__bases__[0]) if cls.__bases__ and issubclass(cls.__bases__[0], Base) else None
    own_methods = {
        name: value
        for name, value in vars(cls).items()
        if inspect.isfunction(value) and not name.startswith("__")
    }
    handler_keys: Dict[str, str] = {}
    for klass in reversed(cls.__mro__):
        for attr in vars(klass).get("attrs") or {}:
            handler_keys[f"on{_CHANGE_WORD}{ucfirst(attr)}"] = attr
    return ClassDescriptor(
        cls=cls,
        parent=parent,
        own_attr_specs=normalize_attr_specs(vars(cls).get("attrs")),
        own_methods=own_methods,
        handler_keys=handler_keys,
    )


def describe(cls: type) -> ClassDescriptor:
    """Return the descriptor of a ``Base`` subclass, building it if needed."""
    descriptor = vars(cls).get(DESCRIPTOR_ATTR_NAME)
    if descriptor is None:
        descriptor = _build_descriptor(cls)
        setattr(cls, DESCRIPTOR_ATTR_NAME, descriptor)
    return descriptor


class Base(Attribute, Aspect, Events):
    """Root of every component: attributes, events and advice."""

    superclass: Optional[type] = None

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if cls.event_errors not in EVENT_ERROR_POLICIES:
            raise ValueError(
                f"{cls.__name__}.event_errors must be one of {EVENT_ERROR_POLICIES}, "
                f"got {cls.event_errors!r}"
            )
        cls.superclass = cls.__bases__[0]
        setattr(cls, DESCRIPTOR_ATTR_NAME, _build_descriptor(cls))

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        self.cid = f"c{next(_cid_counter)}"
        self.attrs: Dict[str, Dict[str, Any]] = {}
        self.plugins: Dict[str, BasePlugin] = {}
        self.destroyed = False
        self.initialize(*args, **kwargs)
        self._bind_declared_handlers()

    def initialize(self, config: Optional[Mapping] = None, **options: Any) -> None:
        if options:
            config = dict(config or {}, **options)
        self.init_attrs(config)

    def _attr_specs(self) -> Dict[str, AttrSpec]:
        return describe(type(self)).merged_attr_specs

    def _bind_declared_handlers(self) -> None:
        descriptor = describe(type(self))
        for key in list(self.attrs):
            value = self.attrs[key]["value"]
            if not callable(value):
                continue
            resolved = descriptor.resolve_handler_key(key)
            if resolved is None:
                continue
            kind, target = resolved
            del self.attrs[key]
            if kind == "on":
                self.on(target, value)
            elif kind == "before":
                self.before(target, value)
            else:
                self.after(target, value)

    # ------------------------------------------------------------------
    # Class building
    # ------------------------------------------------------------------
    @classmethod
    def extend(cls, definition: Optional[Mapping] = None, **members: Any) -> type:
        """Return a new subclass of ``cls`` built from ``definition``."""
        namespace: Dict[str, Any] = dict(definition or {})
        namespace.update(members)
        class_name = namespace.pop("__name__", None) or f"{cls.__name__}Sub"
        implements = namespace.pop("implements", None)
        statics = namespace.pop("statics", None) or {}

        bases: List[type] = [cls]
        if implements is None:
            implements = []
        elif not isinstance(implements, (list, tuple)):
            implements = [implements]
        for item in implements:
            if isinstance(item, type):
                if item not in bases:
                    bases.append(item)
            elif isinstance(item, Mapping):
                _mix_into(namespace, item)
            else:
                raise TypeError(f"implements accepts classes or mappings, got {item!r}")

        for name, value in statics.items():
            namespace[name] = staticmethod(value) if inspect.isfunction(value) else value
        namespace.setdefault("__qualname__", class_name)
        namespace.setdefault("__module__", sys._getframe(1).f_globals.get("__name__", cls.__module__))
        return type(cls)(class_name, tuple(bases), namespace)

    # ------------------------------------------------------------------
    # Plugins
    # ------------------------------------------------------------------
    @classmethod
    def register_plugin(cls, plugin_class: Type[BasePlugin], name: Optional[str] = None) -> None:
        """Register a plugin class globally.

        Without ``name`` the plugin's ``plugin_code`` is used and a
        different class already registered under it is rejected; an explicit
        ``name`` replaces whatever was there.
        """
        if not isinstance(plugin_class, type) or not issubclass(plugin_class, BasePlugin):
            raise TypeError("plugin_class must be a BasePlugin subclass")
        code = name or plugin_class.plugin_code
        if not code:
            raise PluginError(f"Plugin {plugin_class.__name__} is missing plugin_code")
        if name is None:
            existing = _PLUGIN_REGISTRY.get(code)
            if existing is not None and existing is not plugin_class:
                raise PluginError(f"Plugin '{code}' already registered")
        _PLUGIN_REGISTRY[code] = plugin_class

    @classmethod
    def available_plugins(cls) -> Dict[str, Type[BasePlugin]]:
        return dict(_PLUGIN_REGISTRY)

    def plug(self, plugin: str, **config: Any) -> "Base":
        """Attach a registered plugin to this instance."""
        if not isinstance(plugin, str):
            raise TypeError(
                f"Plugin must be referenced by name string, got {type(plugin).__name__}"
            )
        plugin_class = _PLUGIN_REGISTRY.get(plugin)
        if plugin_class is None:
            available = ", ".join(sorted(_PLUGIN_REGISTRY)) or "none"
            raise PluginError(
                f"Unknown plugin '{plugin}'. Register it first. Available plugins: {available}"
            )
        instance = plugin_class(**config)
        if instance.name in self.plugins:
            raise PluginError(f"Plugin '{instance.name}' already attached to {self.cid}")
        instance.attach(self)
        self.plugins[instance.name] = instance
        return self

    def unplug(self, plugin: str) -> "Base":
        instance = self.plugins.pop(plugin, None)
        if instance is not None:
            instance.detach()
        return self

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def destroy(self) -> None:
        """Release plugins, advice, listeners and attribute storage."""
        if self.destroyed:
            return
        for name in reversed(list(self.plugins)):
            self.unplug(name)
        self.unweave()
        self.off()
        self.attrs.clear()
        self.destroyed = True
        logger.debug("%s %s destroyed", type(self).__name__, self.cid)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.cid}>"


def _mix_into(namespace: Dict[str, Any], mixin: Mapping) -> None:
    for key, value in mixin.items():
        if key == "attrs":
            namespace["attrs"] = {**dict(value or {}), **dict(namespace.get("attrs") or {})}
        else:
            namespace.setdefault(key, value)


def is_base_instance(obj: Any) -> bool:
    """Return True when ``obj`` is a ``Base`` instance."""
    return safe_is_instance(obj, "smartbase.core.base.Base")


setattr(Base, DESCRIPTOR_ATTR_NAME, _build_descriptor(Base))
