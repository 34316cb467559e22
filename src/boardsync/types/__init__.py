# IMPORT CONSTRAINT: types/ modules must only import from typing, stdlib, and each other.
# NEVER import from core.py or the engine modules: this prevents circular imports.
"""Typed return-value contracts for boardsync core and API layers."""

from __future__ import annotations

from boardsync.types.api import BoardColumnDict, BoardResponse, ErrorResponse, MutationResponse
from boardsync.types.core import FilterDict, IssueDict, IssuePatch, ProjectConfig, UndoDict

__all__ = [
    "BoardColumnDict",
    "BoardResponse",
    "ErrorResponse",
    "FilterDict",
    "IssueDict",
    "IssuePatch",
    "MutationResponse",
    "ProjectConfig",
    "UndoDict",
]
