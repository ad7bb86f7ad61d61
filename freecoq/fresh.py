"""Fresh identifiers and the IR -> Coq renamer.

Fresh identifiers are introduced artificially into the IR or the Coq AST.
They contain INTERNAL_IDENT_CHAR ("@"), which cannot occur in a user
identifier, followed by a per-prefix counter starting at 0: x@0, x@1, f@0.
The corresponding Coq identifier is obtained with the pure `rename_ident`,
which spells the marker as "_" (x_0). Renaming happens when a Coq identifier
is needed, never when the IR name is generated.
"""

from __future__ import annotations

from .environment import VALUE_SCOPE, Entry, Environment
from .ir import INTERNAL_IDENT_CHAR, is_symbol

# Prefixes for artificially introduced identifiers
FRESH_FUNC_PREFIX: str = "f"
FRESH_SECTION_PREFIX: str = "section"

# Coq vernacular and term keywords that cannot be used as identifiers
COQ_KEYWORDS: set[str] = {
    "Arguments",
    "as",
    "at",
    "cofix",
    "Definition",
    "else",
    "End",
    "exists",
    "exists2",
    "fix",
    "Fixpoint",
    "for",
    "forall",
    "fun",
    "if",
    "IF",
    "Import",
    "in",
    "Inductive",
    "let",
    "match",
    "mod",
    "Module",
    "Prop",
    "Require",
    "return",
    "Section",
    "Set",
    "struct",
    "then",
    "Type",
    "using",
    "Variable",
    "where",
    "with",
}

# Identifiers of the Base library without a source-level counterpart
BASE_RESERVED: set[str] = {
    "Free",
    "pure",
    "impure",
    "Shape",
    "Pos",
    "Partial",
    "P",
}

# Built-in list constructors
SPECIAL_NAMES: dict[str, str] = {
    "[]": "nil",
    ":": "cons",
}

SYMBOL_CHAR_NAMES: dict[str, str] = {
    "!": "bang",
    "#": "hash",
    "$": "dollar",
    "%": "percent",
    "&": "and",
    "*": "times",
    "+": "plus",
    ".": "dot",
    "/": "slash",
    "<": "lt",
    "=": "eq",
    ">": "gt",
    "?": "qmark",
    "@": "at",
    "\\": "bslash",
    "^": "hat",
    "|": "bar",
    "-": "minus",
    "~": "tilde",
    ":": "colon",
}


# ============================================================
# FRESH IDENTIFIERS
# ============================================================


def root_prefix(prefix: str) -> str:
    """Strip the counter of a fresh identifier: x@3 -> x."""
    at = prefix.find(INTERNAL_IDENT_CHAR)
    if at >= 0:
        return prefix[:at]
    return prefix


def fresh_ident(env: Environment, prefix: str) -> str:
    """Next fresh IR identifier for prefix.

    If prefix is itself a fresh identifier, its root prefix is used, so
    freshening x@0 yields x@N rather than x@0@0. The identifier is not
    registered in the environment and can be used to declare something.
    """
    prefix = root_prefix(prefix)
    if prefix == "" or is_symbol(prefix) or prefix in SPECIAL_NAMES:
        prefix = FRESH_FUNC_PREFIX
    while True:
        count = env.fresh_counts.get(prefix, 0)
        env.fresh_counts[prefix] = count + 1
        ident = prefix + INTERNAL_IDENT_CHAR + str(count)
        if env.lookup_entry(VALUE_SCOPE, ident) is None:
            return ident


def fresh_coq_ident(env: Environment, prefix: str) -> str:
    """Like fresh_ident, spelled as a Coq identifier."""
    return rename_ident(fresh_ident(env, prefix))


# ============================================================
# RENAMER
# ============================================================


def rename_ident(ident: str) -> str:
    """Coq spelling of an IR identifier.

    - fresh identifiers: x@0 -> x_0
    - operators: ++ -> op_plus_plus__
    - keywords and Base library names get a trailing underscore
    """
    if ident in SPECIAL_NAMES:
        return SPECIAL_NAMES[ident]
    if is_symbol(ident):
        parts: list[str] = []
        for c in ident:
            parts.append(SYMBOL_CHAR_NAMES.get(c, "sym"))
        return "op_" + "_".join(parts) + "__"
    renamed = ident.replace(INTERNAL_IDENT_CHAR, "_")
    if renamed in COQ_KEYWORDS or renamed in BASE_RESERVED:
        renamed += "_"
    return renamed


def rename_and_define(env: Environment, entry: Entry) -> Entry:
    """Choose a Coq identifier for entry that is not used yet and add it.

    A counter is appended when the renamed identifier is already taken.
    Returns the entry with its ident filled in.
    """
    base = rename_ident(entry.name)
    used = env.used_idents()
    old = env.lookup_entry(entry.scope, entry.name)
    if old is not None:
        used.discard(old.ident)
    ident = base
    n = 0
    while ident in used:
        ident = base + str(n)
        n += 1
    entry.ident = ident
    env.add_entry(entry)
    return entry
