"""Backend package - Gallina AST and Coq source emitter."""

from .coq import render_term as render_term, to_gallina as to_gallina
