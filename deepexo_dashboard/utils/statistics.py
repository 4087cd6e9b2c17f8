# deepexo_dashboard/utils/statistics.py

import math
from decimal import ROUND_HALF_UP, Context, Decimal
from typing import Optional, Sequence

import numpy as np
import pandas as pd

from deepexo_dashboard.utils.constants import PARAMETER_DETAILS
from deepexo_dashboard.utils.schema import (
    HistogramSeries,
    ParameterDetail,
    ParameterStats,
    PredictionCase,
)

DEFAULT_BINS = 20

SUMMARY_COLUMNS = ["parameter", "label", "unit", "count", "mean", "std", "median", "min", "max", "p16", "p84"]


def percentile(sorted_values: Sequence[float], q: float) -> float:
    """
    Linear interpolation between order statistics of an ascending sequence,
    at index q * (n - 1).
    """
    if len(sorted_values) == 0:
        return math.nan
    index = (len(sorted_values) - 1) * q
    lower = math.floor(index)
    upper = math.ceil(index)
    if lower == upper:
        return float(sorted_values[lower])
    weight = index - lower
    return float(sorted_values[lower] * (1 - weight) + sorted_values[upper] * weight)


def compute_stats(samples: Sequence[float]) -> Optional[ParameterStats]:
    """
    Summary statistics for one sample array, or None when it is empty.

    `std` uses Bessel's correction; a single sample has std 0.
    """
    if len(samples) == 0:
        return None

    values = np.sort(np.asarray(samples, dtype=float))
    count = int(values.size)
    lo = float(values[0])
    hi = float(values[-1])
    # rounding or overflow can push the mean and median past the extrema
    mean = float(np.clip(values.mean(), lo, hi))
    median = float(np.clip(np.median(values), lo, hi))
    variance = float(np.sum((values - mean) ** 2)) / (count - 1 if count > 1 else 1)

    return ParameterStats(
        count=count,
        min=lo,
        max=hi,
        mean=mean,
        median=median,
        std=math.sqrt(variance),
        p16=percentile(values, 0.16),
        p84=percentile(values, 0.84),
    )


def build_histogram(samples: Sequence[float], bins: int = DEFAULT_BINS) -> HistogramSeries:
    """
    Equal-width histogram over [min, max]; the maximum lands in the last bin.
    When every sample is identical the range falls back to max(|max|, 1).
    """
    if bins < 1:
        raise ValueError(f"bins must be >= 1, got {bins}")
    if len(samples) == 0:
        return HistogramSeries(labels=[], counts=[])

    values = np.asarray(samples, dtype=float)
    lo = float(values.min())
    hi = float(values.max())
    safe_range = (hi - lo) or max(abs(hi), 1.0)
    bin_width = (safe_range / bins) or 1.0

    positions = np.floor((values - lo) / safe_range * bins)
    # an overflowing range (inf / inf) gives NaN; keep those samples counted
    buckets = np.clip(np.nan_to_num(positions, nan=0.0), 0, bins - 1).astype(int)
    counts = np.bincount(buckets, minlength=bins)

    labels = []
    for index in range(bins):
        center = lo + (index + 0.5) * bin_width
        labels.append(_format_center(center))

    return HistogramSeries(labels=labels, counts=[int(c) for c in counts])


def _format_center(center: float) -> str:
    """Three decimals, exact ties rounded away from zero (0.0625 -> "0.063")."""
    if not math.isfinite(center):
        return "0"
    # enough digits for any finite double at three decimals
    return str(Decimal(center).quantize(Decimal("0.001"), rounding=ROUND_HALF_UP, context=Context(prec=330)))


def summarize_case(
    case: PredictionCase,
    parameters: Sequence[ParameterDetail] = PARAMETER_DETAILS,
) -> pd.DataFrame:
    """
    One row per schema parameter, in schema order. Parameters the case has no
    samples for keep count 0 and NaN statistics.
    """
    rows = []
    for detail in parameters:
        stats = compute_stats(case.parameters.get(detail.id, []))
        row = {"parameter": detail.id, "label": detail.label, "unit": detail.unit}
        if stats is None:
            row.update({col: np.nan for col in SUMMARY_COLUMNS[4:]})
            row["count"] = 0
        else:
            row.update(stats.model_dump())
        rows.append(row)

    return pd.DataFrame(rows, columns=SUMMARY_COLUMNS)
