"""
Timeline Operator - project and track operations plus the engine's exceptions.

This module provides the foundation the editor builds on:
- Exception hierarchy shared by the resolver, the mapper and the editor
- Create projects, add/remove/update/reorder tracks
- Lookups of tracks and items
- Contract checks for track contents and cut maps (debug assertions)

Operations never mutate their input project: they work on a deep copy and
return the updated project, leaving history management to the caller.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Sequence

from models.cut_models import CutMapEntry
from models.timeline_models import (
    EditorProject,
    TimelineItem,
    Track,
    TrackType,
    create_project as _new_project,
    create_track,
    new_item_id,
)

logger = logging.getLogger(__name__)


# =============================================================================
# EXCEPTIONS
# =============================================================================


class TimelineError(Exception):
    """Base exception for timeline operations."""
    pass


class TrackNotFoundError(TimelineError):
    """Raised when a track id is not part of the project."""
    def __init__(self, track_id: str):
        self.track_id = track_id
        super().__init__(f"Track not found: {track_id}")


class ItemNotFoundError(TimelineError):
    """Raised when an item id is not on the given track."""
    def __init__(self, item_id: str, track_id: str | None = None):
        self.item_id = item_id
        self.track_id = track_id
        if track_id:
            super().__init__(f"Item {item_id} not found on track {track_id}")
        else:
            super().__init__(f"Item not found: {item_id}")


class InvalidOperationError(TimelineError):
    """Raised when an operation is invalid."""
    pass


class OverlapResolutionError(TimelineError):
    """
    Raised when overlap resolution does not settle.

    A well-formed track always converges within one scan per item, so this
    signals malformed input rather than a recoverable condition.
    """
    def __init__(self, passes: int, item_count: int):
        self.passes = passes
        self.item_count = item_count
        super().__init__(
            f"Overlap resolution did not converge after {passes} passes "
            f"over {item_count} items"
        )


class CutMapError(TimelineError):
    """Raised when a cut map violates its ordering contract."""
    pass


# =============================================================================
# CONTRACT CHECKS
# =============================================================================


def validate_unique_ids(items: Iterable[TimelineItem]) -> None:
    seen: set[str] = set()
    for item in items:
        if item.id in seen:
            raise InvalidOperationError(f"Duplicate item id on track: {item.id}")
        seen.add(item.id)


def validate_track_items(items: Sequence[TimelineItem]) -> None:
    """
    Check the track invariant: unique ids, positive durations, no item
    before frame 0 and no two items overlapping.
    """
    validate_unique_ids(items)
    ordered = sorted(items, key=lambda i: i.from_frame)
    for item in ordered:
        if item.from_frame < 0:
            raise InvalidOperationError(f"Item {item.id} starts before frame 0 ({item.from_frame})")
        if item.duration_in_frames <= 0:
            raise InvalidOperationError(
                f"Item {item.id} has non-positive duration ({item.duration_in_frames})"
            )
    for prev, nxt in zip(ordered, ordered[1:]):
        if prev.end_frame > nxt.from_frame:
            raise InvalidOperationError(
                f"Items {prev.id} [{prev.from_frame}, {prev.end_frame}) and "
                f"{nxt.id} [{nxt.from_frame}, {nxt.end_frame}) overlap"
            )


def validate_cut_map(cut_map: Sequence[CutMapEntry]) -> None:
    """Check that entries are well-formed and ascending in both spaces."""
    for index, entry in enumerate(cut_map):
        if entry.original_end_ms < entry.original_start_ms:
            raise CutMapError(f"Entry {index} has original end before start")
        if entry.final_end_ms < entry.final_start_ms:
            raise CutMapError(f"Entry {index} has final end before start")
    for index, (prev, nxt) in enumerate(zip(cut_map, cut_map[1:]), start=1):
        if prev.original_end_ms > nxt.original_start_ms:
            raise CutMapError(
                f"Entry {index} overlaps or precedes entry {index - 1} in original space"
            )
        if prev.final_end_ms > nxt.final_start_ms:
            raise CutMapError(
                f"Entry {index} overlaps or precedes entry {index - 1} in cut space"
            )


# =============================================================================
# LOOKUPS
# =============================================================================


def get_track(project: EditorProject, track_id: str) -> Track:
    track = project.get_track(track_id)
    if track is None:
        raise TrackNotFoundError(track_id)
    return track


def get_item(project: EditorProject, track_id: str, item_id: str) -> TimelineItem:
    track = get_track(project, track_id)
    item = track.find_item(item_id)
    if item is None:
        raise ItemNotFoundError(item_id, track_id)
    return item


def find_item_global(project: EditorProject, item_id: str) -> tuple[TimelineItem, Track]:
    found = project.find_item_global(item_id)
    if found is None:
        raise ItemNotFoundError(item_id)
    return found


# =============================================================================
# PROJECT AND TRACK OPERATIONS
# =============================================================================


def create_project(
    name: str = "Untitled Project",
    project_id: str | None = None,
    with_default_track: bool = True,
) -> EditorProject:
    """
    Create a new project, by default with one empty video track.

    Args:
        name: Display name
        project_id: Explicit id (a random one is generated when omitted)
        with_default_track: Add "Track 1" of type video

    Returns:
        The new EditorProject
    """
    project = _new_project(project_id or new_item_id(), name)
    if with_default_track:
        project.tracks.append(create_track(new_item_id(), "Track 1", TrackType.VIDEO))
    logger.debug("project_created id=%s tracks=%d", project.id, len(project.tracks))
    return project


def add_track(
    project: EditorProject,
    name: str,
    track_type: TrackType = TrackType.VIDEO,
    index: int | None = None,
    track_id: str | None = None,
) -> tuple[EditorProject, str]:
    project = project.model_copy(deep=True)
    new_track = create_track(track_id or new_item_id(), name, track_type)
    if project.get_track(new_track.id) is not None:
        raise InvalidOperationError(f"Track id already exists: {new_track.id}")

    if index is None or index >= len(project.tracks):
        project.tracks.append(new_track)
        insert_pos = len(project.tracks) - 1
    else:
        insert_pos = max(0, index)
        project.tracks.insert(insert_pos, new_track)

    logger.debug(
        "track_added id=%s type=%s position=%d", new_track.id, new_track.type.value, insert_pos
    )
    return project, new_track.id


def remove_track(project: EditorProject, track_id: str) -> EditorProject:
    get_track(project, track_id)
    project = project.model_copy(deep=True)
    project.tracks = [t for t in project.tracks if t.id != track_id]
    logger.debug("track_removed id=%s", track_id)
    return project


_IMMUTABLE_TRACK_FIELDS = frozenset({"id", "items"})


def update_track(project: EditorProject, track_id: str, updates: dict[str, Any]) -> EditorProject:
    """Update track attributes (name, type, locked, visible, volume, height)."""
    blocked = _IMMUTABLE_TRACK_FIELDS.intersection(updates)
    if blocked:
        raise InvalidOperationError(f"Cannot update track fields: {sorted(blocked)}")

    project = project.model_copy(deep=True)
    track = get_track(project, track_id)
    merged = track.model_dump()
    merged.update(updates)
    updated = Track.model_validate(merged)
    project.tracks = [updated if t.id == track_id else t for t in project.tracks]
    return project


def reorder_tracks(project: EditorProject, from_index: int, to_index: int) -> EditorProject:
    num_tracks = len(project.tracks)
    for label, value in (("from_index", from_index), ("to_index", to_index)):
        if value < 0 or value >= num_tracks:
            raise InvalidOperationError(
                f"{label} {value} out of range (0-{num_tracks - 1})"
            )

    project = project.model_copy(deep=True)
    moved = project.tracks.pop(from_index)
    project.tracks.insert(to_index, moved)
    return project
