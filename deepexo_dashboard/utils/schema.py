# schema.py

from typing import List, Dict, Optional
from pydantic import BaseModel, ConfigDict


class ParameterDetail(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    label: str
    unit: str = ""
    color: Optional[str] = None
    symbol: Optional[str] = None


# parameter id -> ordered finite samples; absent ids mean "no data"
ParameterSamples = Dict[str, List[float]]


class PredictionCase(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    parameters: ParameterSamples


class ParameterStats(BaseModel):
    count: int
    min: float
    max: float
    mean: float
    median: float
    std: float
    p16: float
    p84: float


class HistogramSeries(BaseModel):
    labels: List[str]
    counts: List[int]
