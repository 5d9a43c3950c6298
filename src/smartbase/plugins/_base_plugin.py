"""Plugin primitives for SmartBase instances.

``BasePlugin``
    Base class every plugin subclasses. Class attributes ``plugin_code``
    (registry key) and ``plugin_description``.

    ``BasePlugin(name=None, *, description=None, **config)`` passes ``config``
    to ``configure()``.

``configure(**config)``
    Declares the accepted options through its signature. A subclass that
    defines ``configure`` gets it wrapped by ``__init_subclass__`` so that:

    - ``flags`` (``"enabled,before:off"``) is parsed into booleans and merged
      with the keyword options;
    - the options are validated in strict mode by ``pydantic.validate_call``
      (unknown names and wrongly typed values raise
      ``pydantic.ValidationError``);
    - validated options are written to the plugin config.

    ``set_config`` is an alias kept for runtime toggles; ``get_config``
    returns a copy of the config.

``attach(host)`` / ``detach()``
    Bind the plugin to one ``Base`` instance and run ``install`` /
    ``uninstall``.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional

from pydantic import ConfigDict, validate_call
from smartseeds.typeutils import safe_is_instance

__all__ = ["BasePlugin"]


def _wrap_configure(original_configure: Callable) -> Callable:
    """Wrap a plugin's configure() to parse flags, validate and store options."""
    validated = validate_call(original_configure, config=ConfigDict(strict=True))

    def wrapper(self: "BasePlugin", *, flags: Optional[str] = None, **kwargs: Any) -> None:
        if flags:
            kwargs.update(self._parse_flags(flags))
        validated(self, **kwargs)
        self._config.update(kwargs)

    wrapper.__doc__ = original_configure.__doc__
    return wrapper


class BasePlugin:
    """Hook interface + configuration helpers for instance plugins.

    A plugin is attached to one host with ``host.plug(code, **config)``;
    ``install`` runs right away and ``uninstall`` runs on ``host.destroy()``
    (or an explicit ``host.unplug(code)``).
    """

    plugin_code: str = ""
    plugin_description: str = ""

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if "configure" in cls.__dict__:
            cls.configure = _wrap_configure(cls.__dict__["configure"])

    def __init__(
        self,
        name: Optional[str] = None,
        *,
        description: Optional[str] = None,
        **config: Any,
    ):
        self.name = name or self.plugin_code or self.__class__.__name__.lower()
        self.description = description or self.plugin_description
        self.host: Any = None
        self._config: Dict[str, Any] = {"enabled": True}
        self.configure(**config)

    def configure(self, *, flags: Optional[str] = None) -> None:
        """Accept only ``flags``; subclasses declare their own options."""
        if flags:
            self._config.update(self._parse_flags(flags))

    def get_config(self) -> Dict[str, Any]:
        return dict(self._config)

    def set_config(self, **config: Any) -> None:
        self.configure(**config)

    def _parse_flags(self, flags: str) -> Dict[str, bool]:
        mapping: Dict[str, bool] = {}
        for chunk in flags.split(","):
            chunk = chunk.strip()
            if not chunk:
                continue
            if ":" in chunk:
                name, value = chunk.split(":", 1)
                mapping[name.strip()] = value.strip().lower() != "off"
            else:
                mapping[chunk] = True
        return mapping

    def attach(self, host: Any) -> None:
        if not safe_is_instance(host, "smartbase.core.base.Base"):
            raise TypeError(f"{type(self).__name__} can only be installed on Base instances")
        self.host = host
        self.install(host)

    def detach(self) -> None:
        host, self.host = self.host, None
        if host is not None:
            self.uninstall(host)

    def install(self, host: Any) -> None:  # pragma: no cover - default no-op
        """Hook run when the plugin is attached to ``host``."""

    def uninstall(self, host: Any) -> None:  # pragma: no cover - default no-op
        """Hook run when ``host`` is destroyed or the plugin is unplugged."""
