"""Per-instance publish/subscribe mixin (source of truth).

``Events`` gives every SmartBase object its own listener table. Nothing is
shared between instances and nothing is global.

Listener table
--------------
Stored on the instance under ``LISTENERS_ATTR_NAME`` and created lazily on
the first ``on``/``once``. Shape: ``{event_name: [Listener, ...]}`` with
registration order preserved. A ``Listener`` holds the handler, an optional
explicit ``context`` and the ``once`` flag.

API
---
- ``on(events, handler, context=None)``: ``events`` is one name or a
  whitespace-separated list; the same handler is appended to each. A
  non-callable handler raises ``TypeError``.
- ``once(...)``: like ``on``; the listener is dropped right before its first
  call.
- ``off(events=None, handler=None, context=None)``: no arguments clear the
  table; names only clear those events; a handler (and optionally a context)
  removes the matching pairings. Removing something that is not registered
  is a no-op.
- ``trigger(events, *args)``: for each name, calls the listeners registered
  at trigger time in order, then the ``"all"`` listeners with
  ``(name, *args)``. Handlers are called with ``call_with_arity`` so they
  may accept fewer arguments than offered; a listener with an explicit
  ``context`` receives it as the first argument. All methods return
  ``self``.

Failure policy
--------------
``event_errors`` (class attribute) selects what happens when a listener
raises:

- ``"isolate"`` (default): the error is logged with ``logger.exception``
  and the remaining listeners still run.
- ``"raise"``: remaining listeners still run, then the first error is
  re-raised to the caller of ``trigger``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from .utils import call_with_arity, split_names

__all__ = ["ALL_EVENTS", "Events", "LISTENERS_ATTR_NAME", "Listener"]

logger = logging.getLogger("smartbase.events")

ALL_EVENTS = "all"
LISTENERS_ATTR_NAME = "__smartbase_listeners__"
EVENT_ERROR_POLICIES = ("isolate", "raise")


@dataclass
class Listener:
    """One subscription in a listener table."""

    handler: Callable
    context: Any = None
    once: bool = False

    def matches(self, handler: Optional[Callable], context: Any) -> bool:
        if handler is not None and self.handler != handler:
            return False
        if context is not None and self.context is not context:
            return False
        return True

    def invoke(self, args: Tuple[Any, ...]) -> Any:
        if self.context is None:
            return call_with_arity(self.handler, *args)
        return call_with_arity(self.handler, self.context, *args)


class Events:
    """Mixin adding ``on``/``once``/``off``/``trigger`` to a class."""

    event_errors: str = "isolate"

    def _listener_table(self, create: bool = False) -> Optional[Dict[str, List[Listener]]]:
        table = getattr(self, LISTENERS_ATTR_NAME, None)
        if table is None and create:
            table = {}
            setattr(self, LISTENERS_ATTR_NAME, table)
        return table

    def on(self, events: str, handler: Callable, context: Any = None) -> "Events":
        return self._subscribe(events, handler, context, once=False)

    def once(self, events: str, handler: Callable, context: Any = None) -> "Events":
        return self._subscribe(events, handler, context, once=True)

    def _subscribe(self, events: str, handler: Callable, context: Any, *, once: bool) -> "Events":
        if not callable(handler):
            raise TypeError(f"Event handler must be callable, got {type(handler).__name__}")
        names = split_names(events)
        table = self._listener_table(create=True)
        for name in names:
            table.setdefault(name, []).append(Listener(handler, context, once))
        return self

    def off(
        self,
        events: Optional[str] = None,
        handler: Optional[Callable] = None,
        context: Any = None,
    ) -> "Events":
        table = self._listener_table()
        if not table:
            return self
        if events is None and handler is None and context is None:
            table.clear()
            return self
        names = split_names(events) if events is not None else list(table)
        for name in names:
            listeners = table.get(name)
            if not listeners:
                continue
            if handler is None and context is None:
                del table[name]
                continue
            kept = [item for item in listeners if not item.matches(handler, context)]
            if kept:
                table[name] = kept
            else:
                del table[name]
        return self

    def trigger(self, events: str, *args: Any) -> "Events":
        names = split_names(events)
        table = self._listener_table()
        if not table:
            return self
        failures: List[BaseException] = []
        for name in names:
            self._dispatch(table, name, args, failures)
            if name != ALL_EVENTS:
                self._dispatch(table, ALL_EVENTS, (name,) + args, failures)
        if failures and self.event_errors == "raise":
            raise failures[0]
        return self

    def _dispatch(
        self,
        table: Dict[str, List[Listener]],
        name: str,
        args: Tuple[Any, ...],
        failures: List[BaseException],
    ) -> None:
        listeners = table.get(name)
        if not listeners:
            return
        # Snapshot: handlers may subscribe or unsubscribe while we iterate.
        for listener in list(listeners):
            if listener.once:
                self._discard(table, name, listener)
            try:
                listener.invoke(args)
            except Exception as exc:
                failures.append(exc)
                if self.event_errors != "raise":
                    logger.exception(
                        "Listener %r for %r on %s failed",
                        listener.handler,
                        name,
                        type(self).__name__,
                    )

    @staticmethod
    def _discard(table: Dict[str, List[Listener]], name: str, listener: Listener) -> None:
        listeners = table.get(name)
        if not listeners:
            return
        remaining = [item for item in listeners if item is not listener]
        if remaining:
            table[name] = remaining
        else:
            table.pop(name, None)

    def listeners(self, event: str) -> Tuple[Callable, ...]:
        """Return the handlers currently registered for ``event``."""
        table = self._listener_table() or {}
        return tuple(item.handler for item in table.get(event, ()))
