from __future__ import annotations

from typing import Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .config import DEFAULT_PARAMS


class AlgorithmParams(BaseModel):
    """
    Immutable parameter record consumed once per pipeline run.

    No field has a default here; stock values live in config.DEFAULT_PARAMS and are
    applied by callers through default_params(). Ranges are documented, not enforced.
    Accepts both snake_case names and the camelCase keys (colorTolerance, ...).
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    color_tolerance: float
    fade_strength: float
    shave_px: float
    feather_width: float
    object_threshold: int
    edge_desat: float
    edge_dark: float
    global_dark_factor: float
    alpha_boost: float
    auto_detect_bg: bool
    manual_bg_color: Tuple[float, float, float]


def default_params(**overrides) -> AlgorithmParams:
    values = dict(DEFAULT_PARAMS)
    values.update(overrides)
    return AlgorithmParams(**values)


class StageTimingsModel(BaseModel):
    load_s: float = 0.0
    process_s: float = 0.0
    save_s: float = 0.0
    total_s: float = 0.0


class ImageResult(BaseModel):
    source_path: str
    output_path: str = ""
    status: Literal["ok", "failed"]
    error: str = ""
    width: int = 0
    height: int = 0
    timings: Optional[StageTimingsModel] = None


class BatchReport(BaseModel):
    """Convenience wrapper for manifest JSON emission."""

    params: AlgorithmParams
    results: List[ImageResult] = Field(default_factory=list)
    archive_path: str = ""
    counts: Dict[str, int] = Field(default_factory=dict)
