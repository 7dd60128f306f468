"""Summary statistics over measured durations."""

from __future__ import annotations

import statistics
from dataclasses import dataclass
from typing import TYPE_CHECKING

from joinbench.errors import EmptyInputError

if TYPE_CHECKING:
    from collections.abc import Sequence


@dataclass(frozen=True)
class SummaryStatistics:
    """Timing statistics in milliseconds."""

    mean: float
    min: float
    max: float
    stddev: float  # population standard deviation (divisor n)
    median: float
    count: int


def summarize(durations: Sequence[float]) -> SummaryStatistics:
    """Reduce a sequence of durations to summary statistics.

    Args:
        durations: Measured durations in milliseconds

    Returns:
        Mean, min, max, population standard deviation and median

    Raises:
        EmptyInputError: If ``durations`` is empty
    """
    if not durations:
        msg = "Cannot summarize an empty sequence of durations"
        raise EmptyInputError(msg)

    values = [float(d) for d in durations]
    return SummaryStatistics(
        mean=statistics.fmean(values),
        min=min(values),
        max=max(values),
        stddev=statistics.pstdev(values),
        median=statistics.median(values),
        count=len(values),
    )
