"""
Pydantic models for the multi-track editor timeline.

This module defines the closed set of placeable timeline items, the tracks
that hold them and the project that groups tracks:
- Item variants discriminated on ``type`` (video, audio, text, image, solid, caption)
- Track with an ordered, overlap-free list of items
- EditorProject with output settings
- Factory functions producing well-formed defaults per variant

All time values are integer frames. Serialization uses the camelCase field
names the renderer consumes (``model_dump(by_alias=True)``), while Python code
constructs and reads models with snake_case names.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Callable, Literal, Union
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from config import (
    EDITOR_DEFAULT_DURATION_FRAMES,
    EDITOR_DEFAULT_FPS,
    EDITOR_DEFAULT_HEIGHT,
    EDITOR_DEFAULT_WIDTH,
)


# =============================================================================
# ENUMS
# =============================================================================


class TrackType(str, Enum):
    """Kind of content a track holds."""
    VIDEO = "video"
    AUDIO = "audio"
    TEXT = "text"
    OVERLAY = "overlay"
    CAPTION = "caption"


FitMode = Literal["cover", "contain", "fill"]
TextTransform = Literal["none", "uppercase", "lowercase", "capitalize"]


def new_item_id() -> str:
    """Short random id for items and tracks."""
    return uuid4().hex[:8]


class EditorModel(BaseModel):
    """Base model: snake_case in Python, camelCase on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# PRESENTATION ATTRIBUTES
# =============================================================================


class Position(EditorModel):
    x: float = 0
    y: float = 0


class TextShadow(EditorModel):
    color: str = "#000000"
    offset_x: float = 0
    offset_y: float = 0
    blur: float = 0


class TextBackground(EditorModel):
    color: str = "#000000"
    border_radius: float = 0
    opacity: float = 1
    padding_x: float = 0
    padding_y: float = 0


class CaptionWord(EditorModel):
    """A word inside a caption; offsets are relative to the caption start."""
    text: str
    start_offset_frames: int
    end_offset_frames: int


# =============================================================================
# TIMELINE ITEMS
# =============================================================================


class BaseItem(EditorModel):
    """
    Fields shared by every placed item.

    ``from_frame`` is serialized as ``from``. Placement constraints
    (``from_frame >= 0``, ``duration_in_frames > 0``) are enforced by the
    factory functions and the overlap resolver, not by the model, so that an
    invalid insertion request can still be expressed and rejected as a no-op.
    """
    id: str = Field(description="Unique item id")
    name: str = Field(default="", description="Display name")
    from_frame: int = Field(default=0, alias="from", description="Start frame on the timeline")
    duration_in_frames: int = Field(description="Length on the timeline in frames")
    track_id: str = Field(description="Owning track id")
    animations: dict[str, Any] | None = Field(default=None)

    @property
    def end_frame(self) -> int:
        """Exclusive end frame (from + duration)."""
        return self.from_frame + self.duration_in_frames

    def overlaps(self, other: BaseItem) -> bool:
        """Check whether the [from, end) intervals intersect."""
        return self.from_frame < other.end_frame and other.from_frame < self.end_frame


class VideoItem(BaseItem):
    type: Literal["video"] = "video"
    src: str
    trim_start_frame: int = 0
    trim_end_frame: int = 0
    volume: float = 1
    playback_rate: float = 1
    fit: FitMode = "cover"
    position: Position = Field(default_factory=lambda: Position(x=540, y=960))
    scale: float = 1


class AudioItem(BaseItem):
    type: Literal["audio"] = "audio"
    src: str
    trim_start_frame: int = 0
    trim_end_frame: int = 0
    volume: float = 1
    fade_in_frames: int = 0
    fade_out_frames: int = 0


class TextItem(BaseItem):
    type: Literal["text"] = "text"
    text: str
    font_family: str = "Inter"
    font_size: float = 48
    font_weight: int = 700
    color: str = "#ffffff"
    stroke_color: str = "#000000"
    stroke_width: float = 0
    position: Position = Field(default_factory=lambda: Position(x=540, y=960))
    text_shadow: TextShadow | None = None
    line_height: float = 1.2
    letter_spacing: float = 0
    background: TextBackground | None = None
    text_opacity: float = 1
    text_transform: TextTransform = "none"
    underline: bool = False
    italic: bool = False
    text_box_width: float | None = None
    text_box_height: float | None = None


class ImageItem(BaseItem):
    type: Literal["image"] = "image"
    src: str
    position: Position = Field(default_factory=Position)
    scale: float = 1
    opacity: float = 1
    fit: FitMode = "contain"


class SolidItem(BaseItem):
    type: Literal["solid"] = "solid"
    color: str
    opacity: float = 1


class CaptionItem(BaseItem):
    type: Literal["caption"] = "caption"
    text: str
    words: list[CaptionWord] = Field(default_factory=list)
    source_video_item_id: str | None = None


TimelineItem = Annotated[
    Union[VideoItem, AudioItem, TextItem, ImageItem, SolidItem, CaptionItem],
    Field(discriminator="type")
]

MEDIA_ITEM_TYPES = frozenset({"video", "audio"})


# =============================================================================
# SPLIT TRIM RULES
# =============================================================================


def _media_piece_updates(item: BaseItem, offset: int, duration: int) -> dict[str, Any]:
    trim_start = item.trim_start_frame + offset
    return {"trim_start_frame": trim_start, "trim_end_frame": trim_start + duration}


def _no_trim_updates(item: BaseItem, offset: int, duration: int) -> dict[str, Any]:
    return {}


SPLIT_TRIM_RULES: dict[str, Callable[[BaseItem, int, int], dict[str, Any]]] = {
    "video": _media_piece_updates,
    "audio": _media_piece_updates,
    "text": _no_trim_updates,
    "image": _no_trim_updates,
    "solid": _no_trim_updates,
    "caption": _no_trim_updates,
}


def split_piece_updates(item: BaseItem, offset: int, duration: int) -> dict[str, Any]:
    """
    Field updates for a piece of ``item`` cut out of it.

    The piece starts ``offset`` frames into the item and lasts ``duration``
    frames. Media variants move their source trim window with the piece so
    that ``trim_end_frame - trim_start_frame == duration_in_frames``; other
    variants only change placement.
    """
    try:
        rule = SPLIT_TRIM_RULES[item.type]
    except KeyError:
        raise ValueError(f"No split rule for item type '{item.type}'") from None
    return {"duration_in_frames": duration, **rule(item, offset, duration)}


# =============================================================================
# TRACKS AND PROJECT
# =============================================================================


_TRACK_HEIGHTS = {TrackType.AUDIO: 60, TrackType.CAPTION: 50}


class Track(EditorModel):
    """
    An ordered, overlap-free list of items.

    Items are kept sorted by ``from_frame`` and their [from, end) intervals
    never intersect. The overlap resolver is the only code path that places
    items, which keeps this invariant.
    """
    id: str
    name: str = ""
    type: TrackType = TrackType.VIDEO
    items: list[TimelineItem] = Field(default_factory=list)
    locked: bool = False
    visible: bool = True
    volume: float = Field(default=1, ge=0, le=1, description="Applies to video/audio tracks")
    height: int = Field(default=80, gt=0, description="Row height in the timeline UI (px)")

    @property
    def end_frame(self) -> int:
        """End frame of the last item (0 for an empty track)."""
        return max((item.end_frame for item in self.items), default=0)

    def find_item(self, item_id: str) -> TimelineItem | None:
        for item in self.items:
            if item.id == item_id:
                return item
        return None


class EditorProject(EditorModel):
    """Top-level editor document: tracks plus output settings."""
    id: str
    name: str = "Untitled Project"
    tracks: list[Track] = Field(default_factory=list)
    fps: float = Field(default=EDITOR_DEFAULT_FPS, gt=0)
    width: int = Field(default=EDITOR_DEFAULT_WIDTH, gt=0)
    height: int = Field(default=EDITOR_DEFAULT_HEIGHT, gt=0)
    duration_in_frames: int = Field(default=EDITOR_DEFAULT_DURATION_FRAMES, ge=0)

    def get_track(self, track_id: str) -> Track | None:
        for track in self.tracks:
            if track.id == track_id:
                return track
        return None

    def find_item_global(self, item_id: str) -> tuple[TimelineItem, Track] | None:
        """Find an item on any track. Returns (item, track) or None."""
        for track in self.tracks:
            item = track.find_item(item_id)
            if item is not None:
                return item, track
        return None

    def project_duration(self) -> int:
        """Project length: the configured duration or the last item end, whichever is later."""
        return max([self.duration_in_frames] + [track.end_frame for track in self.tracks])


# =============================================================================
# FACTORIES
# =============================================================================


def _check_placement(from_frame: int, duration_in_frames: int) -> None:
    if from_frame < 0:
        raise ValueError(f"from_frame must be >= 0, got {from_frame}")
    if duration_in_frames <= 0:
        raise ValueError(f"duration_in_frames must be > 0, got {duration_in_frames}")


def _name_from_src(src: str, fallback: str) -> str:
    return src.split("/")[-1] or fallback


def _name_from_text(text: str, fallback: str) -> str:
    return text[:20] or fallback


def create_video_item(
    id: str,
    track_id: str,
    src: str,
    from_frame: int,
    duration_in_frames: int,
) -> VideoItem:
    _check_placement(from_frame, duration_in_frames)
    return VideoItem(
        id=id,
        name=_name_from_src(src, "Video"),
        from_frame=from_frame,
        duration_in_frames=duration_in_frames,
        track_id=track_id,
        src=src,
        trim_start_frame=0,
        trim_end_frame=duration_in_frames,
    )


def create_audio_item(
    id: str,
    track_id: str,
    src: str,
    from_frame: int,
    duration_in_frames: int,
) -> AudioItem:
    _check_placement(from_frame, duration_in_frames)
    return AudioItem(
        id=id,
        name=_name_from_src(src, "Audio"),
        from_frame=from_frame,
        duration_in_frames=duration_in_frames,
        track_id=track_id,
        src=src,
        trim_start_frame=0,
        trim_end_frame=duration_in_frames,
    )


def create_text_item(
    id: str,
    track_id: str,
    text: str,
    from_frame: int,
    duration_in_frames: int,
) -> TextItem:
    _check_placement(from_frame, duration_in_frames)
    return TextItem(
        id=id,
        name=_name_from_text(text, "Text"),
        from_frame=from_frame,
        duration_in_frames=duration_in_frames,
        track_id=track_id,
        text=text,
    )


def create_image_item(
    id: str,
    track_id: str,
    src: str,
    from_frame: int,
    duration_in_frames: int,
) -> ImageItem:
    _check_placement(from_frame, duration_in_frames)
    return ImageItem(
        id=id,
        name=_name_from_src(src, "Image"),
        from_frame=from_frame,
        duration_in_frames=duration_in_frames,
        track_id=track_id,
        src=src,
    )


def create_solid_item(
    id: str,
    track_id: str,
    color: str,
    from_frame: int,
    duration_in_frames: int,
) -> SolidItem:
    _check_placement(from_frame, duration_in_frames)
    return SolidItem(
        id=id,
        name="Solid",
        from_frame=from_frame,
        duration_in_frames=duration_in_frames,
        track_id=track_id,
        color=color,
    )


def create_caption_item(
    id: str,
    track_id: str,
    text: str,
    words: list[CaptionWord],
    from_frame: int,
    duration_in_frames: int,
    source_video_item_id: str | None = None,
) -> CaptionItem:
    _check_placement(from_frame, duration_in_frames)
    return CaptionItem(
        id=id,
        name=_name_from_text(text, "Caption"),
        from_frame=from_frame,
        duration_in_frames=duration_in_frames,
        track_id=track_id,
        text=text,
        words=list(words),
        source_video_item_id=source_video_item_id,
    )


def create_track(id: str, name: str, type: TrackType) -> Track:
    type = TrackType(type)
    return Track(
        id=id,
        name=name,
        type=type,
        items=[],
        locked=False,
        visible=True,
        volume=1,
        height=_TRACK_HEIGHTS.get(type, 80),
    )


def create_project(id: str, name: str) -> EditorProject:
    """Empty project with the configured default output settings."""
    return EditorProject(
        id=id,
        name=name,
        tracks=[],
        fps=EDITOR_DEFAULT_FPS,
        width=EDITOR_DEFAULT_WIDTH,
        height=EDITOR_DEFAULT_HEIGHT,
        duration_in_frames=EDITOR_DEFAULT_DURATION_FRAMES,
    )
