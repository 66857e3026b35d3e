"""
Import event stream schemas.

The executor publishes one typed stream of events per run:

    progress   - initial snapshot, then one after every completed file
    file_done  - the result of one file (always precedes its progress event)
    cancelled  - at most once, when a requested cancellation took effect
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Annotated, Literal

import pydantic

from session_import.base_model import StrictModel
from session_import.schemas.importing import ImportProgress, ImportResult


class ProgressEvent(StrictModel):
    kind: Literal['progress'] = 'progress'
    progress: ImportProgress


class FileDoneEvent(StrictModel):
    kind: Literal['file_done'] = 'file_done'
    result: ImportResult


class CancelledEvent(StrictModel):
    kind: Literal['cancelled'] = 'cancelled'
    processed_count: int
    success_count: int
    failure_count: int


ImportEvent = Annotated[
    ProgressEvent | FileDoneEvent | CancelledEvent,
    pydantic.Field(discriminator='kind'),
]


EventListener = Callable[[ImportEvent], None]
