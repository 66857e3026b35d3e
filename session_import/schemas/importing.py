"""
Import operation schemas.

Models for batch progress, per-file results, and the accumulated summary of
an import wizard session.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Self

import pydantic

from session_import.base_model import StrictModel
from session_import.types import OutcomeStatus

# ==============================================================================
# Progress
# ==============================================================================


class ImportProgress(StrictModel):
    """
    Snapshot of a running batch.

    `current` counts completed files (1-based once the first file is done)
    and never decreases within one run. `total` is fixed at run start.
    """

    current: int = pydantic.Field(ge=0)
    total: int = pydantic.Field(ge=0)
    current_file: str
    success_count: int = pydantic.Field(ge=0)
    failure_count: int = pydantic.Field(ge=0)

    @classmethod
    def initial(cls, total: int) -> ImportProgress:
        return cls(current=0, total=total, current_file='', success_count=0, failure_count=0)


# ==============================================================================
# Per-file Result
# ==============================================================================


class ImportResult(StrictModel):
    """
    Outcome of importing one file.

    project_id/session_id are present iff success; error is present iff not.
    """

    success: bool
    file_path: str
    project_id: str | None = None
    session_id: str | None = None
    error: str | None = None

    @pydantic.model_validator(mode='after')
    def check_success_fields(self) -> Self:
        """Enforce the success/error field pairing."""
        if self.success:
            if self.project_id is None or self.session_id is None:
                raise ValueError(f'Successful result for {self.file_path} requires project_id and session_id')
            if self.error is not None:
                raise ValueError(f'Successful result for {self.file_path} must not carry an error')
        else:
            if self.error is None:
                raise ValueError(f'Failed result for {self.file_path} requires an error')
            if self.project_id is not None or self.session_id is not None:
                raise ValueError(f'Failed result for {self.file_path} must not carry project_id/session_id')
        return self

    @classmethod
    def succeeded(cls, file_path: str, project_id: str, session_id: str) -> ImportResult:
        return cls(success=True, file_path=file_path, project_id=project_id, session_id=session_id)

    @classmethod
    def failed(cls, file_path: str, error: str) -> ImportResult:
        return cls(success=False, file_path=file_path, error=error)


class FailedFile(StrictModel):
    """One row of the failed-files list."""

    file_path: str
    error: str


class RecentFile(StrictModel):
    """A recently completed file, shown under the progress bar."""

    path: str
    success: bool
    error: str | None = None


# ==============================================================================
# Run Outcome
# ==============================================================================


class ImportOutcome(StrictModel):
    """
    Return value of one executor run.

    On cancellation `results` holds only the files that completed (a prefix
    of the input order); unattempted files are not padded with failures.
    """

    status: OutcomeStatus
    total: int  # Number of paths the run was started with
    results: Sequence[ImportResult]

    @property
    def cancelled(self) -> bool:
        return self.status == 'cancelled'

    @property
    def success_count(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failure_count(self) -> int:
        return sum(1 for r in self.results if not r.success)

    @property
    def skipped_count(self) -> int:
        """Files never attempted because the run was cancelled."""
        return self.total - len(self.results)


# ==============================================================================
# Accumulated Summary
# ==============================================================================


class ImportedProject(StrictModel):
    """A project that received at least one successfully imported session."""

    id: str
    name: str
    session_count: int
    first_session_id: str  # First session observed, used for "jump to project"


class ImportStats(StrictModel):
    """Counts over the accumulated results of a wizard session."""

    success_count: int
    failure_count: int
    project_count: int
