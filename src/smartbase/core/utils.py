"""Value and callable helpers shared by the core mixins.

Plain dicts and lists are the only containers SmartBase clones or merges.
Anything else (callables, tuples, foreign objects such as DOM handles) is
treated as an opaque value and passed around by reference.
"""

from __future__ import annotations

import inspect
from typing import Any, Callable, Dict, List, Optional

__all__ = [
    "call_value_hook",
    "call_with_arity",
    "clone_value",
    "is_blank",
    "is_plain_dict",
    "is_same_value",
    "lcfirst",
    "merge_dicts",
    "positional_arity",
    "split_names",
    "ucfirst",
]

_SCALARS = (str, bytes, int, float, complex, bool, type(None))


def is_plain_dict(value: Any) -> bool:
    return type(value) is dict


def clone_value(value: Any) -> Any:
    """Deep-copy plain dicts and lists, keep every other object as is."""
    if type(value) is dict:
        return {key: clone_value(item) for key, item in value.items()}
    if type(value) is list:
        return [clone_value(item) for item in value]
    return value


def merge_dicts(base: Dict[str, Any], extra: Dict[str, Any]) -> Dict[str, Any]:
    """Return a clone of ``base`` with ``extra`` overlaid field by field.

    Nested plain dicts on both sides merge recursively; any other value in
    ``extra`` replaces the base value verbatim.
    """
    merged = clone_value(base)
    for key, value in extra.items():
        current = merged.get(key)
        if is_plain_dict(current) and is_plain_dict(value):
            merged[key] = merge_dicts(current, value)
        else:
            merged[key] = value
    return merged


def is_same_value(left: Any, right: Any) -> bool:
    """Strict equality: identity, or equal scalars of the same type."""
    if left is right:
        return True
    if type(left) is not type(right) or not isinstance(left, _SCALARS):
        return False
    return left == right


def is_blank(value: Any) -> bool:
    """``None`` and empty strings, lists, tuples or dicts; ``False``/``0`` are not blank."""
    if value is None:
        return True
    if isinstance(value, (str, list, tuple, dict)):
        return len(value) == 0
    return False


def ucfirst(text: str) -> str:
    return text[:1].upper() + text[1:]


def lcfirst(text: str) -> str:
    return text[:1].lower() + text[1:]


def split_names(names: Any) -> List[str]:
    """Split a whitespace-separated name list; reject non-strings."""
    if not isinstance(names, str):
        raise TypeError(f"Expected a name string, got {type(names).__name__}")
    return names.split()


def positional_arity(func: Callable) -> Optional[int]:
    try:
        sig = inspect.signature(func)
    except (TypeError, ValueError):
        return None
    count = 0
    for param in sig.parameters.values():
        if param.kind is inspect.Parameter.VAR_POSITIONAL:
            return None
        if param.kind in (
            inspect.Parameter.POSITIONAL_ONLY,
            inspect.Parameter.POSITIONAL_OR_KEYWORD,
        ):
            count += 1
    return count


def call_with_arity(func: Callable, *args: Any) -> Any:
    """Call ``func`` with as many leading ``args`` as it accepts.

    Callbacks may declare fewer parameters than the engine offers (for
    instance a change handler that only wants the new value). Callables
    taking ``*args`` or without an inspectable signature get everything.
    """
    arity = positional_arity(func)
    if arity is not None:
        args = args[:arity]
    return func(*args)


def call_value_hook(func: Callable, instance: Any, value: Any, name: str) -> Any:
    """Call an attribute validator or setter.

    A hook declaring exactly one positional parameter is a plain function of
    the value (``lambda value: ...``). Any other hook is called like a method,
    ``(instance, value, name)`` trimmed to what it declares.
    """
    if positional_arity(func) == 1:
        return func(value)
    return call_with_arity(func, instance, value, name)
