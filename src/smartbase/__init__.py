"""SmartBase public API surface.

- Public exports: ``Base`` plus the error classes and ``AttrSpec``.
- Plugin registration: built-in plugins (``logging``) are imported for
  their side effect of calling ``Base.register_plugin``. Imports are done
  via ``import_module`` to avoid cycles. ``smartbase.plugins.pydantic`` is
  an optional extra and is only imported on demand.
"""

from importlib import import_module

__version__ = "0.3.0"

from .core import AttrSpec, Base, PluginError, SmartBaseError, UnknownMethodError

for _plugin in ("logging",):
    import_module(f"{__name__}.plugins.{_plugin}")
del _plugin

__all__ = [
    "AttrSpec",
    "Base",
    "PluginError",
    "SmartBaseError",
    "UnknownMethodError",
]
