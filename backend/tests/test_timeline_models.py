import pytest
from pydantic import TypeAdapter

from config import EDITOR_DEFAULT_DURATION_FRAMES, EDITOR_DEFAULT_FPS
from models.timeline_models import (
    AudioItem,
    CaptionWord,
    EditorProject,
    ImageItem,
    TextItem,
    TimelineItem,
    Track,
    TrackType,
    VideoItem,
    create_audio_item,
    create_caption_item,
    create_image_item,
    create_project,
    create_solid_item,
    create_text_item,
    create_track,
    create_video_item,
    split_piece_updates,
)


class TestFactories:
    def test_video_defaults(self):
        item = create_video_item("v1", "t1", "media/clips/intro.mp4", 10, 90)

        assert item.type == "video"
        assert item.name == "intro.mp4"
        assert item.from_frame == 10
        assert item.duration_in_frames == 90
        assert item.track_id == "t1"
        assert item.trim_start_frame == 0
        assert item.trim_end_frame == 90
        assert item.volume == 1
        assert item.playback_rate == 1
        assert item.fit == "cover"
        assert (item.position.x, item.position.y) == (540, 960)
        assert item.scale == 1

    def test_audio_defaults(self):
        item = create_audio_item("a1", "t2", "voice.wav", 0, 30)

        assert item.name == "voice.wav"
        assert (item.trim_start_frame, item.trim_end_frame) == (0, 30)
        assert (item.fade_in_frames, item.fade_out_frames) == (0, 0)

    def test_text_defaults(self):
        item = create_text_item("x1", "t3", "A headline that is rather long", 0, 60)

        assert item.name == "A headline that is r"
        assert item.font_family == "Inter"
        assert item.font_size == 48
        assert item.font_weight == 700
        assert item.color == "#ffffff"
        assert item.stroke_width == 0
        assert item.text_transform == "none"
        assert item.text_box_width is None
        assert item.text_shadow is None

    def test_text_name_fallback(self):
        assert create_text_item("x1", "t3", "", 0, 60).name == "Text"

    def test_image_defaults(self):
        item = create_image_item("i1", "t1", "logo.png", 5, 25)

        assert item.fit == "contain"
        assert (item.position.x, item.position.y) == (0, 0)
        assert item.opacity == 1

    def test_solid_defaults(self):
        item = create_solid_item("s1", "t1", "#112233", 0, 10)

        assert item.name == "Solid"
        assert item.color == "#112233"
        assert item.opacity == 1

    def test_caption_defaults(self):
        words = [CaptionWord(text="hello", start_offset_frames=0, end_offset_frames=5)]
        item = create_caption_item("c1", "t4", "hello", words, 0, 5, source_video_item_id="v1")

        assert item.name == "hello"
        assert item.words == words
        assert item.source_video_item_id == "v1"

    @pytest.mark.parametrize("from_frame,duration", [(-1, 10), (0, 0), (5, -3)])
    def test_invalid_placement_rejected(self, from_frame, duration):
        with pytest.raises(ValueError):
            create_video_item("v1", "t1", "a.mp4", from_frame, duration)
        with pytest.raises(ValueError):
            create_solid_item("s1", "t1", "#000", from_frame, duration)

    def test_default_positions_not_shared(self):
        a = create_video_item("a", "t1", "a.mp4", 0, 10)
        b = create_video_item("b", "t1", "b.mp4", 0, 10)
        a.position.x = 1
        assert b.position.x == 540


class TestSerialization:
    def test_dump_uses_camel_case_and_from(self):
        data = create_video_item("v1", "t1", "a.mp4", 12, 30).model_dump(by_alias=True)

        assert data["from"] == 12
        assert data["durationInFrames"] == 30
        assert data["trackId"] == "t1"
        assert data["trimEndFrame"] == 30
        assert data["playbackRate"] == 1
        assert "from_frame" not in data

    def test_union_parses_by_type_tag(self):
        adapter = TypeAdapter(TimelineItem)
        item = adapter.validate_python(
            {
                "type": "audio",
                "id": "a1",
                "from": 4,
                "durationInFrames": 20,
                "trackId": "t1",
                "src": "x.wav",
                "trimStartFrame": 2,
                "trimEndFrame": 22,
            }
        )

        assert isinstance(item, AudioItem)
        assert item.from_frame == 4
        assert item.trim_start_frame == 2

    def test_unknown_type_rejected(self):
        adapter = TypeAdapter(TimelineItem)
        with pytest.raises(ValueError):
            adapter.validate_python(
                {"type": "hologram", "id": "h", "durationInFrames": 1, "trackId": "t"}
            )

    def test_track_round_trips_through_json(self):
        track = create_track("t1", "Main", TrackType.VIDEO)
        track.items = [
            create_video_item("v1", "t1", "a.mp4", 0, 10),
            create_text_item("x1", "t1", "hi", 10, 5),
        ]

        restored = Track.model_validate_json(track.model_dump_json(by_alias=True))

        assert isinstance(restored.items[0], VideoItem)
        assert isinstance(restored.items[1], TextItem)
        assert restored == track


class TestItemGeometry:
    def test_end_frame(self):
        assert create_solid_item("s", "t", "#000", 10, 15).end_frame == 25

    def test_overlaps_is_half_open(self):
        a = create_solid_item("a", "t", "#000", 0, 10)
        b = create_solid_item("b", "t", "#000", 10, 10)
        c = create_solid_item("c", "t", "#000", 9, 2)
        assert not a.overlaps(b)
        assert a.overlaps(c)
        assert c.overlaps(b)


class TestSplitPieceUpdates:
    def test_media_piece_moves_trim_window(self):
        item = create_video_item("v", "t", "a.mp4", 100, 60).model_copy(
            update={"trim_start_frame": 7, "trim_end_frame": 67}
        )

        assert split_piece_updates(item, 20, 40) == {
            "duration_in_frames": 40,
            "trim_start_frame": 27,
            "trim_end_frame": 67,
        }

    def test_non_media_piece_changes_duration_only(self):
        item = create_image_item("i", "t", "a.png", 0, 60)
        assert split_piece_updates(item, 20, 40) == {"duration_in_frames": 40}


class TestTracksAndProject:
    @pytest.mark.parametrize(
        "track_type,height",
        [(TrackType.AUDIO, 60), (TrackType.CAPTION, 50), (TrackType.VIDEO, 80), ("overlay", 80)],
    )
    def test_track_heights(self, track_type, height):
        track = create_track("t", "Track", track_type)
        assert track.height == height
        assert track.locked is False
        assert track.visible is True
        assert track.items == []

    def test_project_defaults(self):
        project = create_project("p1", "Demo")

        assert project.fps == EDITOR_DEFAULT_FPS
        assert project.duration_in_frames == EDITOR_DEFAULT_DURATION_FRAMES
        assert project.tracks == []

    def test_project_duration_extends_past_last_item(self):
        project = EditorProject(id="p", duration_in_frames=100)
        track = create_track("t1", "Main", TrackType.VIDEO)
        track.items = [create_video_item("v", "t1", "a.mp4", 80, 50)]
        project.tracks.append(track)

        assert project.project_duration() == 130

    def test_project_duration_uses_configured_minimum(self):
        project = EditorProject(id="p", duration_in_frames=100)
        project.tracks.append(create_track("t1", "Main", TrackType.VIDEO))
        assert project.project_duration() == 100

    def test_find_item_global(self):
        project = EditorProject(id="p")
        first = create_track("t1", "A", TrackType.VIDEO)
        second = create_track("t2", "B", TrackType.OVERLAY)
        second.items = [create_image_item("i1", "t2", "a.png", 0, 10)]
        project.tracks = [first, second]

        item, track = project.find_item_global("i1")

        assert isinstance(item, ImageItem)
        assert track.id == "t2"
        assert project.find_item_global("missing") is None
