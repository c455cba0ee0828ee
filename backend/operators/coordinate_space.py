"""
Mapping between the original recording timeline and the cut timeline.

The cut map lists every kept segment with its bounds in both spaces. A time
in a removed gap (a cut silence) has no position in the cut video, so mapping
it returns None instead of raising.
"""

from __future__ import annotations

import logging
from bisect import bisect_left
from typing import Sequence

from config import TIMELINE_DEBUG_ASSERTIONS
from models.cut_models import Caption, CoordinateSpace, CutMapEntry, TimelineSegment
from operators.timeline_operator import validate_cut_map

logger = logging.getLogger(__name__)


class CoordinateSpaceMapper:
    """
    Bidirectional position mapping over an immutable cut map.

    The active space is chosen by the caller: ``"original"`` when the
    original recording is shown, ``"cut"`` when the silence-removed video is.
    Bounds are inclusive in both spaces, so a time shared by the end of one
    entry and the start of the next maps through the earlier entry.
    """

    def __init__(
        self,
        cut_map: Sequence[CutMapEntry] | None,
        total_duration_ms: float,
        space: CoordinateSpace | str = CoordinateSpace.ORIGINAL,
        *,
        validate: bool | None = None,
    ):
        self._cut_map: tuple[CutMapEntry, ...] = tuple(cut_map or ())
        if validate is None:
            validate = TIMELINE_DEBUG_ASSERTIONS
        if validate:
            validate_cut_map(self._cut_map)

        self.total_duration_ms = total_duration_ms
        self.space = CoordinateSpace(space)
        self._original_ends = [e.original_end_ms for e in self._cut_map]
        self._final_ends = [e.final_end_ms for e in self._cut_map]

    @property
    def cut_map(self) -> tuple[CutMapEntry, ...]:
        return self._cut_map

    @property
    def cut_duration(self) -> float:
        if not self._cut_map:
            return 0
        return self._cut_map[-1].final_end_ms

    @property
    def active_duration(self) -> float:
        """Total duration (ms) in the active space."""
        if self.space == CoordinateSpace.ORIGINAL:
            return self.total_duration_ms
        return self.cut_duration

    def with_space(self, space: CoordinateSpace | str) -> CoordinateSpaceMapper:
        """Same cut map, different active space."""
        return CoordinateSpaceMapper(
            self._cut_map, self.total_duration_ms, space, validate=False
        )

    def to_cut(self, original_ms: float) -> float | None:
        """Original-space ms to cut-space ms; None if the time was cut out."""
        index = bisect_left(self._original_ends, original_ms)
        if index == len(self._cut_map):
            return None
        entry = self._cut_map[index]
        if original_ms < entry.original_start_ms:
            return None
        return entry.final_start_ms + (original_ms - entry.original_start_ms)

    def to_original(self, cut_ms: float) -> float | None:
        """Cut-space ms to original-space ms; None if outside every segment."""
        index = bisect_left(self._final_ends, cut_ms)
        if index == len(self._cut_map):
            return None
        entry = self._cut_map[index]
        if cut_ms < entry.final_start_ms:
            return None
        return entry.original_start_ms + (cut_ms - entry.final_start_ms)

    def to_active(self, ms: float, from_space: CoordinateSpace | str) -> float | None:
        """Map ``ms`` expressed in ``from_space`` into the active space."""
        from_space = CoordinateSpace(from_space)
        if from_space == self.space:
            return ms
        if from_space == CoordinateSpace.ORIGINAL:
            return self.to_cut(ms)
        return self.to_original(ms)

    def map_segments_to_cut(self, segments: Sequence[TimelineSegment]) -> list[TimelineSegment]:
        """
        Enabled segments, sorted by start, in cut space.

        Segments are expected to lie inside kept material. A bound that does
        not map is logged and set to 0 so the segment stays listed.
        """
        if not self._cut_map:
            return []

        enabled = sorted((s for s in segments if s.enabled), key=lambda s: s.start_ms)
        mapped: list[TimelineSegment] = []
        for segment in enabled:
            cut_start = self.to_cut(segment.start_ms)
            cut_end = self.to_cut(segment.end_ms)
            if cut_start is None or cut_end is None:
                logger.warning(
                    "segment_unmapped id=%s start_ms=%s end_ms=%s cut_start=%s cut_end=%s",
                    segment.id,
                    segment.start_ms,
                    segment.end_ms,
                    cut_start,
                    cut_end,
                )
            mapped.append(
                segment.model_copy(
                    update={
                        "start_ms": cut_start if cut_start is not None else 0,
                        "end_ms": cut_end if cut_end is not None else 0,
                    }
                )
            )
        return mapped

    def map_captions_to_cut(self, captions: Sequence[Caption]) -> list[Caption]:
        """Captions in cut space; captions touching removed time are dropped."""
        if not self._cut_map:
            return []

        mapped: list[Caption] = []
        for caption in captions:
            cut_start = self.to_cut(caption.start_ms)
            cut_end = self.to_cut(caption.end_ms)
            if cut_start is None or cut_end is None:
                continue
            mapped.append(caption.model_copy(update={"start_ms": cut_start, "end_ms": cut_end}))

        dropped = len(captions) - len(mapped)
        if dropped:
            logger.debug("captions_dropped count=%d total=%d", dropped, len(captions))
        return mapped


def build_cut_map(segments: Sequence[TimelineSegment]) -> list[CutMapEntry]:
    """
    Cut map for a video made of the enabled segments, played back to back.

    Segments are taken in start order; each one's final bounds continue where
    the previous one ended.
    """
    kept = sorted((s for s in segments if s.enabled), key=lambda s: s.start_ms)
    cut_map: list[CutMapEntry] = []
    accumulated_ms = 0.0
    for index, segment in enumerate(kept):
        duration_ms = segment.end_ms - segment.start_ms
        if duration_ms < 0:
            raise ValueError(f"Segment {segment.id} ends before it starts")
        entry = CutMapEntry(
            segment_index=index,
            original_start_ms=segment.start_ms,
            original_end_ms=segment.end_ms,
            final_start_ms=accumulated_ms,
            final_end_ms=accumulated_ms + duration_ms,
        )
        accumulated_ms = entry.final_end_ms
        cut_map.append(entry)
    return cut_map


def derive_cut_captions(
    full_captions: Sequence[Caption],
    cut_map: Sequence[CutMapEntry],
) -> list[Caption]:
    """
    Remap captions of the original video onto the cut video.

    A caption belongs to the kept segment its start falls in; its end is
    clamped to that segment's end in cut space. Captions starting in removed
    time are left out.
    """
    result: list[Caption] = []
    for entry in cut_map:
        for caption in full_captions:
            if not (entry.original_start_ms <= caption.start_ms < entry.original_end_ms):
                continue
            offset = caption.start_ms - entry.original_start_ms
            end_offset = caption.end_ms - entry.original_start_ms
            result.append(
                caption.model_copy(
                    update={
                        "start_ms": entry.final_start_ms + offset,
                        "end_ms": min(entry.final_start_ms + end_offset, entry.final_end_ms),
                    }
                )
            )
    return result
