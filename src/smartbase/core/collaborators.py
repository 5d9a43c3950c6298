"""Capability contracts consumed from the host environment.

SmartBase itself never touches a DOM or a timer. Widgets built on top of it
receive these capabilities from outside; the protocols below are the only
surface they may rely on. They are ``runtime_checkable`` so widgets can
verify what they were handed.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional, Protocol, runtime_checkable

__all__ = ["ElementSet", "Scheduler", "Selector", "TimerHandle"]


@runtime_checkable
class ElementSet(Protocol):
    """Result of a DOM selection."""

    def on(self, event: str, handler: Callable[..., Any]) -> Any: ...

    def off(self, event: str, handler: Optional[Callable[..., Any]] = None) -> Any: ...

    def offset(self, coords: Optional[Dict[str, float]] = None) -> Any: ...

    def height(self) -> float: ...

    def scroll_top(self) -> float: ...


Selector = Callable[[Any], ElementSet]


@runtime_checkable
class TimerHandle(Protocol):
    def cancel(self) -> None: ...


@runtime_checkable
class Scheduler(Protocol):
    """Timer utilities: one-shot/repeating calls and debouncing."""

    def later(self, fn: Callable[[], Any], ms: int, repeat: bool = False) -> TimerHandle: ...

    def buffer(self, fn: Callable[..., Any], ms: int) -> Callable[..., Any]: ...
