"""
Models for translating time between the original recording and the cut video.

The cutting stage keeps some segments of the recording and drops the rest
(silences, disabled segments). Each kept segment becomes one CutMapEntry that
records where the segment sits in both coordinate spaces. All values are in
milliseconds.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CoordinateSpace(str, Enum):
    """Timeline a position is expressed in."""
    ORIGINAL = "original"
    CUT = "cut"


class CutModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CutMapEntry(CutModel):
    """
    Correspondence between one kept segment and its place in the cut video.

    Entries of a cut map are sorted and non-overlapping in both spaces, and
    ``final_end_ms - final_start_ms == original_end_ms - original_start_ms``.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    segment_index: int = Field(default=0, ge=0, description="Index of the segment in the cut video")
    original_start_ms: float = Field(description="Start time in the original video (ms)")
    original_end_ms: float = Field(description="End time in the original video (ms)")
    final_start_ms: float = Field(description="Start time in the cut video (ms)")
    final_end_ms: float = Field(description="End time in the cut video (ms)")


class TimelineSegment(CutModel):
    """A detected speech segment; disabled segments are cut as well."""
    id: str
    start_ms: float
    end_ms: float
    enabled: bool = True
    preselection_score: float | None = Field(default=None, ge=0, le=100)
    preselection_reason: str | None = None


class Caption(CutModel):
    text: str
    start_ms: float
    end_ms: float
    timestamp_ms: float | None = None
    confidence: float | None = None
