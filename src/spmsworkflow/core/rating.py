"""Rating engine: per-output and per-record averages and adjectival classification.

All functions are pure. Averages are returned unrounded; classification uses the
exact value, so callers round only for display.
"""

from __future__ import annotations

from typing import Any, Iterable

from ..schemas import AdjectivalRating

DIMENSIONS: tuple[str, ...] = ("rating_q", "rating_e", "rating_t")

# Lower bounds are inclusive.
ADJECTIVAL_BANDS: tuple[tuple[float, AdjectivalRating], ...] = (
    (4.5, AdjectivalRating.OUTSTANDING),
    (3.5, AdjectivalRating.VERY_SATISFACTORY),
    (2.5, AdjectivalRating.SATISFACTORY),
    (1.5, AdjectivalRating.UNSATISFACTORY),
)


def rated_dimensions(output: Any) -> list[float]:
    """Return the Q/E/T values that are set and positive."""
    values: list[float] = []
    for name in DIMENSIONS:
        value = getattr(output, name, None)
        if value is not None and value > 0:
            values.append(float(value))
    return values


def output_average(output: Any) -> float:
    """Mean of the rated dimensions of one output, or 0 when nothing is rated."""
    values = rated_dimensions(output)
    if not values:
        return 0.0
    return sum(values) / len(values)


def record_average(outputs: Iterable[Any]) -> float:
    """Mean of the positive output averages; unrated outputs are excluded."""
    averages = [avg for avg in (output_average(o) for o in outputs) if avg > 0]
    if not averages:
        return 0.0
    return sum(averages) / len(averages)


def classify(average: float) -> AdjectivalRating:
    for lower_bound, label in ADJECTIVAL_BANDS:
        if average >= lower_bound:
            return label
    if average > 0:
        return AdjectivalRating.POOR
    return AdjectivalRating.NOT_APPLICABLE
