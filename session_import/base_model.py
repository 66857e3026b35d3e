"""
Pydantic base models for session-import value types.

Value types crossing the backend boundary (discovered files, results,
progress snapshots, events) are immutable StrictModels. The on-disk store
index is the one document edited in place, so it uses MutableStrictModel.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class StrictModel(BaseModel):
    """Immutable model: unknown fields rejected, no type coercion."""

    model_config = ConfigDict(extra='forbid', strict=True, frozen=True)


class MutableStrictModel(BaseModel):
    """Same validation as StrictModel, but fields can be reassigned and containers edited."""

    model_config = ConfigDict(extra='forbid', strict=True, frozen=False)
