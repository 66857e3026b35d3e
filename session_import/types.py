"""
Shared type definitions for the session-import package.

Centralizes common type annotations used across multiple modules.
"""

from datetime import datetime
from typing import Annotated, Literal

import pydantic

# Pydantic-enhanced datetime (allows str/int -> datetime conversion from backend payloads)
JsonDatetime = Annotated[datetime, pydantic.Field(strict=False)]

# Tool ecosystems whose session logs can be imported
ImportSource = Literal['claude', 'gemini', 'cursor']

# Dedup classification of a project
ImportStatus = Literal['new', 'imported']

# Terminal state of one executor run
OutcomeStatus = Literal['completed', 'cancelled']
