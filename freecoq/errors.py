"""Conversion diagnostics.

Every user-facing failure of the converter is a ConversionError carrying the
location of the offending declaration. A ConversionError aborts the
conversion of the current declaration group; the module driver decides
whether to continue with the next group.
"""

from __future__ import annotations

from .ir import Loc, loc_unknown


class ConversionError(Exception):
    """Fatal error while converting a declaration group."""

    def __init__(self, msg: str, loc: Loc | None = None):
        if loc is None:
            loc = loc_unknown()
        self.msg: str = msg
        self.loc: Loc = loc
        self.line: int = loc.line
        self.col: int = loc.col
        if loc.line > 0:
            super().__init__(msg + " at line " + str(loc.line) + " col " + str(loc.col))
        else:
            super().__init__(msg)


class DecArgError(ConversionError):
    """No unique structurally decreasing argument could be determined."""


class TypeSynonymCycleError(ConversionError):
    """Type synonym declarations form a cycle."""


class InlineError(Exception):
    """Internal invariant violation during inlining.

    Not a user diagnostic: well-formed input never triggers it.
    """
