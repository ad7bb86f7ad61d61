"""Converter options and source pragmas."""

from __future__ import annotations

from dataclasses import dataclass

from .ir import DecArgPragma, Loc

PRAGMA_PREFIX: str = "pragma"


@dataclass
class Options:
    """Settings for one module conversion.

    - module_name: name of the generated Coq module if the source has no header
    - fail_fast: stop at the first failing declaration group instead of
      collecting one diagnostic per group
    - use_sections: hoist constant arguments of recursive groups into a
      Section; when False every recursive group uses helper functions
    - emit_comments: precede generated sentence groups with comments
    """

    module_name: str = "Main"
    fail_fast: bool = False
    use_sections: bool = True
    emit_comments: bool = True


def extract_pragmas(source: str) -> list[DecArgPragma]:
    """Scan leading comment lines for decreasing-argument pragmas.

    A pragma line has the form `-- pragma decreasing <function> <argument>`.
    Scanning stops at the first line that is neither blank nor a comment.
    Unknown pragmas are ignored.
    """
    pragmas: list[DecArgPragma] = []
    lineno = 0
    for line in source.split("\n"):
        lineno += 1
        stripped = line.strip()
        if stripped == "":
            continue
        if not stripped.startswith("--"):
            break
        words = stripped[2:].split()
        if len(words) == 4 and words[0] == PRAGMA_PREFIX and words[1] == "decreasing":
            col = line.index("--") + 1
            loc = Loc(lineno, col, lineno, len(line) + 1)
            pragmas.append(DecArgPragma(words[2], words[3], loc=loc))
    return pragmas
