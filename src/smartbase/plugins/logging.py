"""Logging plugin (source of truth).

Traces advised method calls on one host and, optionally, every event the
host triggers.

Responsibilities
----------------
- ``methods`` (whitespace-separated names): each one is advised with a
  ``before`` advice emitting ``"<cid>.<method> start"`` and an ``after``
  advice emitting ``"<cid>.<method> end (<ms> ms)"`` with the elapsed time
  formatted as ``{elapsed:.2f}``. Nested/reentrant calls are timed with a
  per-method stack. When the method raises, its ``error:<method>`` event
  drops the pending start time and no end message is emitted.
- ``events`` (default False): listen to ``"all"`` and emit
  ``"<cid> event <name>"`` for every trigger except the advice events
  (``before:`` / ``after:`` / ``error:<method>``), already traced.
- Sinks:
  * ``print`` true -> ``print(message)``;
  * else ``log`` true -> ``logger.info(message)`` if the logger reports
    handlers via ``hasHandlers()``, otherwise ``print(message)`` to avoid
    drops;
  * else -> no output.
- ``enabled`` gates the plugin at call time (default True); ``before`` /
  ``after`` gate each message kind.
- Use a provided ``logging.Logger`` (default ``logging.getLogger("smartbase")``).

Configuration
-------------
``configure(enabled, before, after, log, print, events, methods)`` declares
the accepted options; keyword arguments to ``host.plug("logging", ...)``,
a ``flags`` string (``"before:off,events:on"``) and later ``set_config``
calls all go through it and are validated by ``BasePlugin``.

Uninstall removes every advice and listener the plugin added; methods stay
woven (other advice may still rely on them) until ``host.unweave()``.

Registration
------------
At import the plugin registers itself as ``"logging"``.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, List, Optional, Tuple

from smartbase.core.base import Base
from smartbase.core.utils import split_names
from smartbase.plugins._base_plugin import BasePlugin

__all__ = ["LoggingPlugin"]

_FLAG_DEFAULTS = {
    "enabled": True,
    "before": True,
    "after": True,
    "log": True,
    "print": False,
    "events": False,
}
_ADVICE_PREFIXES = ("before:", "after:", "error:")


class LoggingPlugin(BasePlugin):
    """Trace method calls and events of a SmartBase instance."""

    plugin_code = "logging"
    plugin_description = "Logs advised method calls with timing"

    def __init__(self, name: Optional[str] = None, *, logger: Optional[logging.Logger] = None, **cfg: Any):
        self._logger = logger or logging.getLogger("smartbase")
        self._started: Dict[str, List[float]] = {}
        self._installed: List[Tuple[str, Callable]] = []
        super().__init__(name, **cfg)

    def configure(
        self,
        enabled: bool = True,
        before: bool = True,
        after: bool = True,
        log: bool = True,
        print: bool = False,  # noqa: A002 - shadowing builtin intentionally
        events: bool = False,
        methods: str = "",
    ):
        """Configure logging plugin options.

        The wrapper added by __init_subclass__ handles writing to the config.
        """
        pass  # Storage is handled by the wrapper

    def install(self, host: Any) -> None:
        methods = split_names(self.get_config().get("methods", ""))
        for method in methods:
            before = self._make_before(host, method)
            after = self._make_after(host, method)
            failed = self._make_error(method)
            host.before(method, before)
            host.after(method, after)
            host.on(f"error:{method}", failed)
            self._installed.extend(
                [(f"before:{method}", before), (f"after:{method}", after), (f"error:{method}", failed)]
            )
        if self._effective_config()["events"]:
            host.on("all", self._log_event)
            self._installed.append(("all", self._log_event))

    def uninstall(self, host: Any) -> None:
        for event, handler in self._installed:
            host.off(event, handler)
        self._installed.clear()
        self._started.clear()

    def _make_before(self, host: Any, method: str) -> Callable:
        def before(*args: Any) -> None:
            cfg = self._effective_config()
            if not cfg["enabled"]:
                return
            self._started.setdefault(method, []).append(time.perf_counter())
            if cfg["before"]:
                self._emit(f"{host.cid}.{method} start", cfg=cfg)

        return before

    def _make_after(self, host: Any, method: str) -> Callable:
        def after(*args: Any) -> None:
            cfg = self._effective_config()
            stack = self._started.get(method)
            if not cfg["enabled"] or not stack:
                return
            elapsed = (time.perf_counter() - stack.pop()) * 1000
            if cfg["after"]:
                self._emit(f"{host.cid}.{method} end ({elapsed:.2f} ms)", cfg=cfg)

        return after

    def _make_error(self, method: str) -> Callable:
        def failed(*args: Any) -> None:
            stack = self._started.get(method)
            if stack:
                stack.pop()

        return failed

    def _log_event(self, event: str, *args: Any) -> None:
        if event.startswith(_ADVICE_PREFIXES):
            return
        cfg = self._effective_config()
        if cfg["enabled"] and cfg["events"] and self.host is not None:
            self._emit(f"{self.host.cid} event {event}", cfg=cfg)

    def _emit(self, message: str, *, cfg: Optional[dict] = None) -> None:
        if cfg is None:
            return
        if cfg.get("print"):
            print(message)
            return
        if cfg.get("log"):
            logger = self._logger
            has_handlers = getattr(logger, "hasHandlers", None) or getattr(
                logger, "has_handlers", None
            )
            can_log = callable(has_handlers) and has_handlers()
            if can_log:
                logger.info(message)
            else:
                print(message)

    def _effective_config(self) -> dict:
        cfg = _FLAG_DEFAULTS | self.get_config()
        return {key: cfg[key] for key in _FLAG_DEFAULTS}


Base.register_plugin(LoggingPlugin)
