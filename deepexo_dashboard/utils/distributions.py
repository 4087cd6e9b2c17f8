# deepexo_dashboard/utils/distributions.py

"""
Turns the raw JSON returned by the inference service into an ordered list of
prediction cases, each holding per-parameter posterior samples.

    raw response -> locate_distribution -> one entry per case
                 -> extract_parameter_map -> {parameter id: [samples]}

Nothing here performs I/O or keeps state between calls; the parameter schema
is always passed in.
"""

import math
from typing import Any, AbstractSet, Collection, List, Sequence

from deepexo_dashboard.utils.constants import (
    CASE_LABELS,
    DISTRIBUTION_FIELD,
    PARAMETER_DETAILS,
    parameter_keys,
)
from deepexo_dashboard.utils.schema import ParameterDetail, ParameterSamples, PredictionCase

_NOT_FOUND = object()


def locate_distribution(raw: Any) -> Any:
    """
    Return the value of the first "Prediction_distribution" field in `raw`.

    A field at the current level wins over anything nested below it; otherwise
    children are searched depth-first in their natural order and the first
    hit stops the search. Returns None when the field does not exist.
    """
    found = _find_distribution(raw)
    return None if found is _NOT_FOUND else found


def _find_distribution(node: Any) -> Any:
    if isinstance(node, dict):
        if DISTRIBUTION_FIELD in node:
            return node[DISTRIBUTION_FIELD]
        children = node.values()
    elif isinstance(node, list):
        children = node
    else:
        return _NOT_FOUND

    for child in children:
        found = _find_distribution(child)
        if found is not _NOT_FOUND:
            return found
    return _NOT_FOUND


def case_label(idx: int) -> str:
    if idx < len(CASE_LABELS):
        return f"Case {CASE_LABELS[idx]}"
    return f"Case {idx + 1}"


def normalize_cases(
    distribution: Any,
    parameters: Sequence[ParameterDetail] = PARAMETER_DETAILS,
) -> List[PredictionCase]:
    """Build one PredictionCase per entry of an already located distribution."""
    if isinstance(distribution, dict):
        entries = list(distribution.values())
    elif isinstance(distribution, list):
        entries = distribution
    else:
        return []

    parameter_ids = frozenset(parameter_keys(parameters))
    return [
        PredictionCase(id=case_label(idx), parameters=extract_parameter_map(entry, parameter_ids))
        for idx, entry in enumerate(entries)
    ]


def normalize_prediction_cases(
    raw: Any,
    parameters: Sequence[ParameterDetail] = PARAMETER_DETAILS,
) -> List[PredictionCase]:
    return normalize_cases(locate_distribution(raw), parameters)


def extract_parameter_map(node: Any, parameter_ids: Collection[str]) -> ParameterSamples:
    """
    Collect samples for every recognized parameter id found in `node`.

    A dict holding at least one recognized key is a leaf record: only its
    recognized keys are read and everything else beside them is ignored.
    Dicts without recognized keys and lists are treated as plain nesting.
    """
    if not isinstance(parameter_ids, AbstractSet):
        parameter_ids = frozenset(parameter_ids)

    if isinstance(node, list):
        result: ParameterSamples = {}
        for item in node:
            _extend_samples(result, extract_parameter_map(item, parameter_ids))
        return result

    if isinstance(node, dict):
        if any(key in parameter_ids for key in node):
            record: ParameterSamples = {}
            for key, value in node.items():
                if key not in parameter_ids:
                    continue
                samples = collect_numeric_samples(value)
                if samples:
                    record[key] = record.get(key, []) + samples
            return record

        result = {}
        for value in node.values():
            _extend_samples(result, extract_parameter_map(value, parameter_ids))
        return result

    return {}


def _extend_samples(result: ParameterSamples, source: ParameterSamples) -> None:
    # source maps are freshly built by extract_parameter_map, so their lists can be taken over
    for key, values in source.items():
        if key in result:
            result[key].extend(values)
        else:
            result[key] = values


def merge_parameter_maps(
    target: ParameterSamples,
    source: ParameterSamples,
    parameter_ids: Collection[str],
) -> ParameterSamples:
    """Key-wise concatenation, target samples first. Neither input is modified."""
    result = {key: list(values) for key, values in target.items()}
    for key, values in source.items():
        if key not in parameter_ids:
            continue
        result[key] = result.get(key, []) + list(values or [])
    return result


def collect_numeric_samples(value: Any) -> List[float]:
    """Every finite number reachable from `value`, in traversal order."""
    if isinstance(value, list):
        return [sample for item in value for sample in collect_numeric_samples(item)]
    if isinstance(value, dict):
        return [sample for item in value.values() for sample in collect_numeric_samples(item)]

    numeric = _to_float(value)
    if numeric is None or not math.isfinite(numeric):
        return []
    return [numeric]


def _to_float(value: Any):
    # bool is an int subclass; true/false are flags, not samples
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, str)):
        try:
            return float(value)
        except (ValueError, OverflowError):
            return None
    return None
