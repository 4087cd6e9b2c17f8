import re
from typing import Optional, Sequence, Tuple

from deepexo_dashboard.utils.schema import ParameterDetail


PARAMETER_DETAILS: Tuple[ParameterDetail, ...] = (
    ParameterDetail(id="WRF", label="Water Radial Fraction", color="#7AE5FF"),
    ParameterDetail(id="MRF", label="Mantle Radial Fraction", color="#A0F4DB"),
    ParameterDetail(id="CRF", label="Core Radial Fraction", color="#F9D976"),
    ParameterDetail(id="WMF", label="Water Mass Fraction", color="#8AC5FF"),
    ParameterDetail(id="CMF", label="Core Mass Fraction", color="#FF9E9E"),
    ParameterDetail(id="P_CMB (TPa)", label="Core-Mantle Boundary Pressure (TPa)", color="#FFBE7B", unit="TPa"),
    ParameterDetail(id="T_CMB (10^3K)", label="Core-Mantle Boundary Temp (10^3K)", color="#C799FF", unit="10^3K"),
    ParameterDetail(id="K2", label="Tidal Love Number (k2)", color="#B9A3FF", symbol="k₂"),
)

DISTRIBUTION_FIELD = "Prediction_distribution"

CASE_LABELS = ("A", "B", "C", "D", "E", "F", "G", "H", "I", "J")

ENDPOINTS = (
    "single_prediction",
    "multi_prediction",
    "prediction_with_gaussian",
    "file_prediction",
)

# Payload shown in the request editor on first load
DEFAULT_GAUSSIAN_PAYLOAD = {
    "Mass": {"value": [1.0], "std": [0.02]},
    "Radius": {"value": [1.0], "std": [0.02]},
    "Fe/Mg": {"value": [0.9], "std": [0.02]},
    "Si/Mg": {"value": [0.8], "std": [0.02]},
    "sample_num": 500,
    "Times": 20,
}

_UNIT_SUFFIX = re.compile(r"\s*\(.*?\)\s*$")


def parameter_keys(details: Sequence[ParameterDetail] = PARAMETER_DETAILS) -> Tuple[str, ...]:
    return tuple(item.id for item in details)


PARAMETER_KEYS = parameter_keys()


def get_parameter_detail(
    parameter_id: str,
    details: Sequence[ParameterDetail] = PARAMETER_DETAILS,
) -> Optional[ParameterDetail]:
    return next((item for item in details if item.id == parameter_id), None)


def get_parameter_label(parameter_id: str, details: Sequence[ParameterDetail] = PARAMETER_DETAILS) -> str:
    detail = get_parameter_detail(parameter_id, details)
    return detail.label if detail else parameter_id


def format_output_display(parameter_id: str, details: Sequence[ParameterDetail] = PARAMETER_DETAILS) -> str:
    """
    Short display name for an output: the configured symbol when there is one,
    otherwise the id without its "(unit)" suffix; the unit is appended in
    parentheses when it is not empty.
        "P_CMB (TPa)" -> "P_CMB (TPa)"
        "WRF"         -> "WRF"
    """
    detail = get_parameter_detail(parameter_id, details)
    base = detail.symbol if detail and detail.symbol else _UNIT_SUFFIX.sub("", parameter_id)
    if detail and detail.unit:
        return f"{base} ({detail.unit})"
    return base
