"""Maintainability rating thresholds."""

from typing import List, Sequence, Union

from ..models.measure_models import ProjectConfiguration, Rating


class DebtRatingGrid:
    """
    Maps a technical debt ratio to a rating.

    The grid holds the upper bounds of ratings A to D. A ratio at or below
    the first bound is rated A, a ratio above the last bound is rated E.
    """

    def __init__(self, grid: Union[Sequence[float], ProjectConfiguration, str]):
        if isinstance(grid, ProjectConfiguration):
            grid = grid.rating_grid
        if isinstance(grid, str):
            grid = self.parse(grid)
        self.thresholds: List[float] = [float(v) for v in grid]

        if len(self.thresholds) != 4:
            raise ValueError(
                f"Rating grid must contain 4 thresholds, got {len(self.thresholds)}: {self.thresholds}"
            )
        if any(a >= b for a, b in zip(self.thresholds, self.thresholds[1:])):
            raise ValueError(f"Rating grid thresholds must be ascending: {self.thresholds}")

    @staticmethod
    def parse(text: str) -> List[float]:
        """Parse a comma-separated grid such as "0.05,0.1,0.2,0.5"."""
        try:
            return [float(part) for part in text.split(",")]
        except ValueError:
            raise ValueError(f"Invalid rating grid: {text!r}") from None

    def rating_for(self, ratio: float) -> Rating:
        for rating, bound in zip(Rating, self.thresholds):
            if ratio <= bound:
                return rating
        return Rating.E

    def bound_of(self, rating: Rating) -> float:
        """Highest ratio still rated as given; infinite for E."""
        if rating == Rating.E:
            return float("inf")
        return self.thresholds[rating.value - 1]
