"""Run-wide collection of authorization mismatches."""
from __future__ import annotations

from collections.abc import Iterable

from authz_matrix import FailureRecord
from authz_matrix.errors import AuthorizationMismatchError


class FailureAggregator:
    """Append-only, order-preserving sink for FailureRecords."""

    def __init__(self) -> None:
        self._records: list[FailureRecord] = []
        self.trials = 0

    def note_trial(self) -> None:
        self.trials += 1

    def collect(self, records: Iterable[FailureRecord]) -> None:
        self._records.extend(records)

    @property
    def records(self) -> list[FailureRecord]:
        return list(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def assert_empty(self) -> None:
        """Raise with every collected record, not just the first."""
        if self._records:
            raise AuthorizationMismatchError(self._records)
