"""Aspect weaver: ``before``/``after`` advice on instance methods.

The weaver never edits a class. The first time a method is advised on an
instance, its bound original is recorded in a per-instance side-table and
an instance attribute of the same name is installed in front of it. That
wrapper:

1. triggers ``before:<name>`` with the positional call arguments,
2. calls the original with the full call (positional and keyword),
3. triggers ``after:<name>`` with ``(result, *args)``,
4. returns the original result.

When the original raises, the wrapper triggers ``error:<name>`` with
``(exc, *args)`` instead of ``after:<name>`` and re-raises.

Advices are ordinary listeners of those two events, so every ``before``
advice runs in registration order ahead of the original, every ``after``
advice in registration order once it returns, and ``off`` removes them.
Advice receives the call arguments read-only: nothing it returns is fed
back into the call. ``method(name)`` is the accessor to the unadvised
callable and ``unweave()`` restores the instance.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import wraps
from typing import Any, Callable, Dict, Optional

from .errors import UnknownMethodError
from .utils import split_names

__all__ = ["ADVICE_ATTR_NAME", "AdvisedMethod", "Aspect"]

ADVICE_ATTR_NAME = "__smartbase_advised__"


@dataclass
class AdvisedMethod:
    """Side-table record for one woven method."""

    name: str
    original: Callable
    wrapper: Callable
    instance_level: bool


class Aspect:
    """Mixin adding ``before``/``after`` advice (needs ``Events``)."""

    def before(self, method_names: str, advice: Callable) -> "Aspect":
        return self._weave("before", method_names, advice)

    def after(self, method_names: str, advice: Callable) -> "Aspect":
        return self._weave("after", method_names, advice)

    def method(self, name: str) -> Callable:
        """Return the original callable for ``name``, bypassing any advice."""
        record = self._advice_table().get(name)
        if record is not None:
            return record.original
        target = getattr(self, name, None)
        if not callable(target):
            raise UnknownMethodError(self, [name])
        return target

    def advised_methods(self) -> tuple:
        return tuple(self._advice_table())

    def unweave(self, method_names: Optional[str] = None) -> "Aspect":
        """Drop advice and restore the original methods (all when no names)."""
        table = self._advice_table()
        names = split_names(method_names) if method_names is not None else list(table)
        for name in names:
            record = table.pop(name, None)
            if record is None:
                continue
            if record.instance_level:
                setattr(self, name, record.original)
            else:
                self.__dict__.pop(name, None)
            self.off(f"before:{name} after:{name} error:{name}")  # type: ignore[attr-defined]
        return self

    # ------------------------------------------------------------------
    # Weaving
    # ------------------------------------------------------------------
    def _advice_table(self, create: bool = False) -> Dict[str, AdvisedMethod]:
        table = getattr(self, ADVICE_ATTR_NAME, None)
        if table is None:
            table = {}
            if create:
                setattr(self, ADVICE_ATTR_NAME, table)
        return table

    def _weave(self, when: str, method_names: str, advice: Callable) -> "Aspect":
        if not callable(advice):
            raise TypeError(f"Advice must be callable, got {type(advice).__name__}")
        names = split_names(method_names)
        table = self._advice_table()
        missing = [
            name for name in names if name not in table and not callable(getattr(self, name, None))
        ]
        if missing:
            raise UnknownMethodError(self, missing)
        for name in names:
            self._ensure_wrapped(name)
            self.on(f"{when}:{name}", advice)  # type: ignore[attr-defined]
        return self

    def _ensure_wrapped(self, name: str) -> None:
        table = self._advice_table(create=True)
        if name in table:
            return
        instance_level = name in self.__dict__
        original = getattr(self, name)
        emitter = self

        @wraps(original)
        def advised(*args: Any, **kwargs: Any) -> Any:
            emitter.trigger(f"before:{name}", *args)  # type: ignore[attr-defined]
            try:
                result = original(*args, **kwargs)
            except Exception as exc:
                emitter.trigger(f"error:{name}", exc, *args)  # type: ignore[attr-defined]
                raise
            emitter.trigger(f"after:{name}", result, *args)  # type: ignore[attr-defined]
            return result

        table[name] = AdvisedMethod(name, original, advised, instance_level)
        setattr(self, name, advised)
