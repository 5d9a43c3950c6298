"""Core runtime aggregator.

Exposes the building blocks from a single module: ``Base`` (class builder),
the three mixins it composes (``Attribute``, ``Events``, ``Aspect``), the
spec/descriptor types and the error classes. Importing it performs only
imports; it does not register plugins.
"""

from .aspect import Aspect
from .attribute import AttrSpec, Attribute
from .base import Base, ClassDescriptor, describe, is_base_instance
from .errors import PluginError, SmartBaseError, UnknownMethodError
from .events import Events, Listener

__all__ = [
    "Aspect",
    "AttrSpec",
    "Attribute",
    "Base",
    "ClassDescriptor",
    "Events",
    "Listener",
    "PluginError",
    "SmartBaseError",
    "UnknownMethodError",
    "describe",
    "is_base_instance",
]
