"""Progress indicator for per-article log lines."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Progress:
    """Position of a single trial within a journal

    count and trial are 1-based.
    """

    count: int
    total: int
    trial: int
    max_trial: int

    @property
    def indicator(self) -> str:
        """Render as "NN/MM: trial/max_trial" (single digits space-padded)"""
        return f"{self.count:>2}/{self.total:>2}: {self.trial}/{self.max_trial}"
