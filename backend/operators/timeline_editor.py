from __future__ import annotations

import logging
from typing import Any, Callable

from models.timeline_models import (
    MEDIA_ITEM_TYPES,
    EditorProject,
    TimelineItem,
    Track,
    create_audio_item,
    create_image_item,
    create_solid_item,
    create_text_item,
    create_video_item,
    new_item_id,
    split_piece_updates,
)
from operators.overlap_resolver import resolve_overlaps
from operators.timeline_operator import (
    InvalidOperationError,
    get_item,
    get_track,
)

logger = logging.getLogger(__name__)

_IMMUTABLE_ITEM_FIELDS = frozenset({"id", "type", "track_id"})


def _replace_items(project: EditorProject, track_id: str, items: list[TimelineItem]) -> None:
    track = get_track(project, track_id)
    track.items = sorted(items, key=lambda i: i.from_frame)


def _place(
    project: EditorProject,
    track: Track,
    item: TimelineItem,
    new_id: Callable[[], str] | None = None,
    exclude_id: str | None = None,
) -> None:
    others = [i for i in track.items if i.id != exclude_id]
    placed = item.model_copy(update={"track_id": track.id})
    _replace_items(project, track.id, resolve_overlaps(others, placed, new_id))


def add_item(
    project: EditorProject,
    track_id: str,
    item: TimelineItem,
    new_id: Callable[[], str] | None = None,
) -> EditorProject:
    """
    Place an item on a track, displacing or splitting what it lands on.

    An item with a non-positive duration is not placed.
    """
    project = project.model_copy(deep=True)
    track = get_track(project, track_id)
    if track.find_item(item.id) is not None:
        raise InvalidOperationError(f"Item {item.id} is already on track {track_id}")

    _place(project, track, item, new_id)
    logger.debug(
        "item_added id=%s type=%s track=%s from=%d duration=%d",
        item.id,
        item.type,
        track_id,
        item.from_frame,
        item.duration_in_frames,
    )
    return project


def remove_item(project: EditorProject, track_id: str, item_id: str) -> EditorProject:
    get_item(project, track_id, item_id)
    project = project.model_copy(deep=True)
    track = get_track(project, track_id)
    track.items = [i for i in track.items if i.id != item_id]
    logger.debug("item_removed id=%s track=%s", item_id, track_id)
    return project


def update_item(
    project: EditorProject,
    track_id: str,
    item_id: str,
    updates: dict[str, Any],
) -> EditorProject:
    """
    Change item attributes. Placement changes (from_frame,
    duration_in_frames) go back through overlap resolution.
    """
    blocked = _IMMUTABLE_ITEM_FIELDS.intersection(updates)
    if blocked:
        raise InvalidOperationError(f"Cannot update item fields: {sorted(blocked)}")

    item = get_item(project, track_id, item_id)
    merged = item.model_dump()
    merged.update(updates)
    updated = type(item).model_validate(merged)

    project = project.model_copy(deep=True)
    track = get_track(project, track_id)
    if (updated.from_frame, updated.duration_in_frames) == (item.from_frame, item.duration_in_frames):
        track.items = [updated if i.id == item_id else i for i in track.items]
        return project

    if updated.from_frame < 0 or updated.duration_in_frames <= 0:
        raise InvalidOperationError(
            f"Invalid placement for item {item_id}: from={updated.from_frame} "
            f"duration={updated.duration_in_frames}"
        )
    _place(project, track, updated, exclude_id=item_id)
    return project


def move_item(
    project: EditorProject,
    from_track_id: str,
    to_track_id: str,
    item_id: str,
    new_from: int,
    new_id: Callable[[], str] | None = None,
) -> EditorProject:
    """Move an item to ``new_from`` (clamped to 0) on the same or another track."""
    item = get_item(project, from_track_id, item_id)
    get_track(project, to_track_id)

    project = project.model_copy(deep=True)
    source = get_track(project, from_track_id)
    source.items = [i for i in source.items if i.id != item_id]

    moved = item.model_copy(update={"from_frame": max(0, new_from)})
    _place(project, get_track(project, to_track_id), moved, new_id)

    logger.debug(
        "item_moved id=%s from_track=%s to_track=%s from=%d",
        item_id,
        from_track_id,
        to_track_id,
        moved.from_frame,
    )
    return project


def resize_item(
    project: EditorProject,
    track_id: str,
    item_id: str,
    new_from: int,
    new_duration: int,
    new_id: Callable[[], str] | None = None,
) -> EditorProject:
    """
    Set an item's start and duration (start clamped to 0, duration to 1).

    Media items keep their trim start; the trim end follows the new duration.
    """
    item = get_item(project, track_id, item_id)
    duration = max(1, new_duration)
    updates: dict[str, Any] = {
        "from_frame": max(0, new_from),
        **split_piece_updates(item, 0, duration),
    }
    resized = item.model_copy(update=updates)

    project = project.model_copy(deep=True)
    _place(project, get_track(project, track_id), resized, new_id, exclude_id=item_id)
    return project


def split_item(
    project: EditorProject,
    track_id: str,
    item_id: str,
    split_at_frame: int,
    new_id: Callable[[], str] | None = None,
) -> tuple[EditorProject, str]:
    """
    Split an item at a timeline frame.

    The left piece keeps the item id; the right piece gets a new id and a
    " (2)" name suffix. Media pieces get matching trim windows.

    Returns:
        (updated project, id of the right piece)

    Raises:
        InvalidOperationError: If the frame is not strictly inside the item
    """
    item = get_item(project, track_id, item_id)
    local_split = split_at_frame - item.from_frame
    if local_split <= 0 or local_split >= item.duration_in_frames:
        raise InvalidOperationError(
            f"Split frame {split_at_frame} is not inside item {item_id} "
            f"[{item.from_frame}, {item.end_frame})"
        )

    right_id = (new_id or new_item_id)()
    right_duration = item.duration_in_frames - local_split
    left_piece = item.model_copy(update=split_piece_updates(item, 0, local_split), deep=True)
    right_piece = item.model_copy(
        update={
            **split_piece_updates(item, local_split, right_duration),
            "id": right_id,
            "name": f"{item.name} (2)",
            "from_frame": split_at_frame,
        },
        deep=True,
    )

    project = project.model_copy(deep=True)
    track = get_track(project, track_id)
    items = []
    for existing in track.items:
        if existing.id == item_id:
            items.extend([left_piece, right_piece])
        else:
            items.append(existing)
    _replace_items(project, track_id, items)

    logger.debug(
        "item_split id=%s right_id=%s at=%d media=%s",
        item_id,
        right_id,
        split_at_frame,
        item.type in MEDIA_ITEM_TYPES,
    )
    return project, right_id


def duplicate_item(
    project: EditorProject,
    track_id: str,
    item_id: str,
    new_id: Callable[[], str] | None = None,
) -> tuple[EditorProject, str]:
    """Copy an item right after itself. Returns (updated project, copy id)."""
    item = get_item(project, track_id, item_id)
    new_id = new_id or new_item_id
    duplicate_id = new_id()
    duplicate = item.model_copy(
        update={
            "id": duplicate_id,
            "name": f"{item.name} (copy)",
            "from_frame": item.end_frame,
        },
        deep=True,
    )

    project = project.model_copy(deep=True)
    _place(project, get_track(project, track_id), duplicate, new_id)
    return project, duplicate_id


def clear_track(project: EditorProject, track_id: str) -> EditorProject:
    project = project.model_copy(deep=True)
    track = get_track(project, track_id)
    num_items = len(track.items)
    track.items = []
    logger.debug("track_cleared id=%s items_removed=%d", track_id, num_items)
    return project


# =============================================================================
# QUICK ADD HELPERS
# =============================================================================


def add_video_item(
    project: EditorProject, track_id: str, src: str, from_frame: int, duration_in_frames: int
) -> tuple[EditorProject, str]:
    item_id = new_item_id()
    item = create_video_item(item_id, track_id, src, from_frame, duration_in_frames)
    return add_item(project, track_id, item), item_id


def add_audio_item(
    project: EditorProject, track_id: str, src: str, from_frame: int, duration_in_frames: int
) -> tuple[EditorProject, str]:
    item_id = new_item_id()
    item = create_audio_item(item_id, track_id, src, from_frame, duration_in_frames)
    return add_item(project, track_id, item), item_id


def add_text_item(
    project: EditorProject, track_id: str, text: str, from_frame: int, duration_in_frames: int
) -> tuple[EditorProject, str]:
    item_id = new_item_id()
    item = create_text_item(item_id, track_id, text, from_frame, duration_in_frames)
    return add_item(project, track_id, item), item_id


def add_image_item(
    project: EditorProject, track_id: str, src: str, from_frame: int, duration_in_frames: int
) -> tuple[EditorProject, str]:
    item_id = new_item_id()
    item = create_image_item(item_id, track_id, src, from_frame, duration_in_frames)
    return add_item(project, track_id, item), item_id


def add_solid_item(
    project: EditorProject, track_id: str, color: str, from_frame: int, duration_in_frames: int
) -> tuple[EditorProject, str]:
    item_id = new_item_id()
    item = create_solid_item(item_id, track_id, color, from_frame, duration_in_frames)
    return add_item(project, track_id, item), item_id
