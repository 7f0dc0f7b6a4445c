"""Sales analysis: per-interval deltas and set estimates from a sold counter."""

from typing import List, Sequence

from ..exceptions import ConfigError
from ..storage.models import AnalysisRow, Observation, SalesSummary


class SalesAnalyzer:
    """Turn a cumulative total-sold series into interval sales estimates.

    For each observation, in time order:
    - delta_sold: change since the previous reading (first reading is
      measured against zero)
    - estimated_sets: delta_sold // multiple_pattern when delta_sold > 0
    - remainder_sales: delta_sold % multiple_pattern when delta_sold > 0

    Stagnant or decreasing counters report their delta as-is with zero
    sets and remainder.
    """

    @staticmethod
    def validate_multiple_pattern(multiple_pattern) -> int:
        if isinstance(multiple_pattern, bool) or not isinstance(multiple_pattern, int):
            raise ConfigError(
                f"multiple_pattern must be an integer, got {multiple_pattern!r}",
                {"multiple_pattern": multiple_pattern},
            )
        if multiple_pattern <= 0:
            raise ConfigError(
                f"multiple_pattern must be positive, got {multiple_pattern}",
                {"multiple_pattern": multiple_pattern},
            )
        return multiple_pattern

    def analyze(
        self, observations: Sequence[Observation], multiple_pattern: int
    ) -> List[AnalysisRow]:
        """Compute one analysis row per observation.

        Args:
            observations: Observations of a single product
            multiple_pattern: Units per set, must be > 0

        Returns:
            Rows in chronological order

        Raises:
            ConfigError: multiple_pattern is not a positive integer
        """
        self.validate_multiple_pattern(multiple_pattern)

        rows = []
        previous_sold = 0

        for obs in sorted(observations, key=lambda o: o.timestamp):
            delta = obs.total_sold - previous_sold

            if delta > 0:
                estimated_sets, remainder = divmod(delta, multiple_pattern)
            else:
                estimated_sets, remainder = 0, 0

            rows.append(
                AnalysisRow(
                    timestamp=obs.timestamp,
                    total_sold=obs.total_sold,
                    delta_sold=delta,
                    estimated_sets=estimated_sets,
                    remainder_sales=remainder,
                )
            )
            previous_sold = obs.total_sold

        return rows

    @staticmethod
    def summarize(rows: Sequence[AnalysisRow]) -> SalesSummary:
        """Aggregate analysis rows; negative intervals are counted, not clamped."""
        if not rows:
            return SalesSummary()

        return SalesSummary(
            observations=len(rows),
            total_delta=sum(r.delta_sold for r in rows),
            total_sets=sum(r.estimated_sets for r in rows),
            latest_total_sold=rows[-1].total_sold,
            negative_intervals=sum(1 for r in rows if r.delta_sold < 0),
        )
