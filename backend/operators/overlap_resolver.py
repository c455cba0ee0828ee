"""
Overlap resolution for placing an item on a track.

Given the items already on a track and one incoming item, produce the track's
new item list with no overlaps. Existing items that collide with the incoming
item are displaced or split, never dropped:

    existing:  [====E====]
    incoming:        [===N===]
    result:    [==E==][===N===]          (right overlap: E packed before N)

    existing:  [=========E=========]
    incoming:        [===N===]
    result:    [=E=]  [===N===]  [=E'=]  (containment: E split around N)

Items pushed aside can collide with their own neighbours; those collisions
are resolved by packing outward from the incoming item until a full scan
finds nothing to move. Finally, if anything ended up before frame 0, the
whole track is shifted right so the earliest item starts at 0.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Sequence

from config import TIMELINE_DEBUG_ASSERTIONS
from models.timeline_models import TimelineItem, new_item_id, split_piece_updates
from operators.timeline_operator import OverlapResolutionError, validate_unique_ids

logger = logging.getLogger(__name__)

LEFT = "left"
RIGHT = "right"
INCOMING = "incoming"


@dataclass
class _Placement:
    """Working position of one item (or split piece) during resolution."""
    item: TimelineItem
    start: int
    duration: int
    rank: int
    side: str
    updates: dict[str, Any] = field(default_factory=dict)

    @property
    def end(self) -> int:
        return self.start + self.duration

    def build(self, shift: int) -> TimelineItem:
        update = {**self.updates, "from_frame": self.start + shift}
        return self.item.model_copy(update=update, deep=True)


def _classify(
    item: TimelineItem,
    rank: int,
    ns: int,
    ne: int,
    new_id: Callable[[], str],
) -> list[_Placement]:
    es, ee = item.from_frame, item.end_frame
    de = item.duration_in_frames

    if not (es < ne and ee > ns):
        side = LEFT if ee <= ns else RIGHT
        return [_Placement(item, es, de, rank, side)]

    # Full coverage: move to the nearer edge, ties go right.
    if es >= ns and ee <= ne:
        if es + ee < ns + ne:
            return [_Placement(item, ns - de, de, rank, LEFT)]
        return [_Placement(item, ne, de, rank, RIGHT)]

    # Strict containment: split around the incoming item.
    if es < ns and ee > ne:
        left_duration = ns - es
        right_duration = ee - ne
        left = _Placement(
            item, es, left_duration, rank, LEFT,
            updates=split_piece_updates(item, 0, left_duration),
        )
        right = _Placement(
            item, ne, right_duration, rank, RIGHT,
            updates={
                **split_piece_updates(item, ne - es, right_duration),
                "id": new_id(),
                "name": f"{item.name} (2)",
            },
        )
        return [left, right]

    # Tail clipped: pack before the incoming item.
    if es < ns:
        return [_Placement(item, ns - de, de, rank, LEFT)]

    # Head clipped: pack after the incoming item.
    return [_Placement(item, ne, de, rank, RIGHT)]


def _pack_pass(left: list[_Placement], right: list[_Placement], ns: int, ne: int) -> bool:
    """
    One outward scan from the incoming item. Returns True if anything moved.

    ``left`` and ``right`` are ordered nearest-first. A farther item that
    overlaps a nearer one is displaced away from the incoming item so that it
    touches the nearer one, which is the tail-clipped / head-clipped rule with
    the direction fixed by the item's side.
    """
    moved = False

    boundary = ns
    for placement in left:
        if placement.end > boundary:
            placement.start = boundary - placement.duration
            moved = True
        boundary = min(boundary, placement.start)

    boundary = ne
    for placement in right:
        if placement.start < boundary:
            placement.start = boundary
            moved = True
        boundary = max(boundary, placement.end)

    return moved


def resolve_overlaps(
    existing_items: Sequence[TimelineItem],
    incoming: TimelineItem,
    new_id: Callable[[], str] | None = None,
    *,
    validate: bool | None = None,
) -> list[TimelineItem]:
    """
    Place ``incoming`` among ``existing_items`` without overlaps.

    Args:
        existing_items: Items currently on the track, in any order
        incoming: Item being placed; it keeps its duration and relative position
        new_id: Id generator for the right-hand piece of a split item
        validate: Reject duplicate ids with InvalidOperationError
            (defaults to TIMELINE_DEBUG_ASSERTIONS)

    Returns:
        The track's new items sorted by from_frame, incoming item included.
        An incoming item with a non-positive duration is not placed and the
        existing items are returned unchanged.

    Raises:
        OverlapResolutionError: If packing does not settle (malformed input)
    """
    if incoming.duration_in_frames <= 0:
        logger.debug(
            "overlap_resolve_skipped item=%s duration=%d",
            incoming.id,
            incoming.duration_in_frames,
        )
        return list(existing_items)

    if validate is None:
        validate = TIMELINE_DEBUG_ASSERTIONS
    if validate:
        validate_unique_ids([*existing_items, incoming])
    if new_id is None:
        new_id = new_item_id

    ns, ne = incoming.from_frame, incoming.end_frame

    # Rank = original left-to-right order; it decides which of two
    # colliding items sits nearer the incoming item.
    ordered = sorted(enumerate(existing_items), key=lambda pair: (pair[1].from_frame, pair[0]))
    placements: list[_Placement] = []
    for rank, (_, item) in enumerate(ordered):
        placements.extend(_classify(item, rank, ns, ne, new_id))

    left = sorted((p for p in placements if p.side == LEFT), key=lambda p: p.rank, reverse=True)
    right = sorted((p for p in placements if p.side == RIGHT), key=lambda p: p.rank)

    item_count = len(placements) + 1
    max_passes = item_count + 1
    passes = 0
    while _pack_pass(left, right, ns, ne):
        passes += 1
        if passes >= max_passes:
            raise OverlapResolutionError(passes, item_count)

    anchor = _Placement(incoming, ns, incoming.duration_in_frames, -1, INCOMING)
    everything = [anchor, *placements]
    shift = max(0, -min(p.start for p in everything))

    result = [p.build(shift) for p in everything]
    result.sort(key=lambda i: i.from_frame)

    split_count = len(placements) - len(existing_items)
    displaced = sum(
        1 for p in placements
        if p.start != p.item.from_frame and "id" not in p.updates
    )
    logger.debug(
        "overlaps_resolved incoming=%s items=%d displaced=%d split=%d shift=%d passes=%d",
        incoming.id,
        len(result),
        displaced,
        split_count,
        shift,
        passes,
    )
    return result
