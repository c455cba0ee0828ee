from __future__ import annotations

import pytest

from utils.frame_utils import frame_to_ms, frames_to_timecode, ms_to_frame


def test_frame_to_ms() -> None:
    assert frame_to_ms(30, 30) == 1000
    assert frame_to_ms(45, 30) == 1500


def test_ms_to_frame_rounds_half_up() -> None:
    assert ms_to_frame(1000, 30) == 30
    assert ms_to_frame(50, 30) == 2
    assert ms_to_frame(100, 25) == 3


def test_frames_to_timecode() -> None:
    assert frames_to_timecode(0, 30) == "00:00:00"
    assert frames_to_timecode(95, 30) == "00:03:05"
    assert frames_to_timecode(30 * 61 + 7, 30) == "01:01:07"


@pytest.mark.parametrize("func", [frame_to_ms, ms_to_frame, frames_to_timecode])
def test_rejects_non_positive_fps(func) -> None:
    with pytest.raises(ValueError):
        func(10, 0)
