"""Exceptions raised while assembling reaction-network trees.

All of them derive from :class:`CompositionError`, which itself is a
``ValueError`` so callers that already guard input validation with
``except ValueError`` keep working.
"""

from __future__ import annotations


class CompositionError(ValueError):
    """Base class for composition failures."""


class NameConflict(CompositionError):
    """A symbol name carries incompatible roles (e.g. species in one system, parameter in another)."""


class DuplicateChildName(CompositionError):
    """Two children of one node would share a name."""


class UnresolvedScope(CompositionError):
    """A scoped reference could not be bound to a declared symbol."""


class CyclicComposition(CompositionError):
    """A node would become its own descendant."""
