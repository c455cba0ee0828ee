from __future__ import annotations

import math


def frame_to_ms(frame: float, fps: float) -> float:
    if fps <= 0:
        raise ValueError("fps must be > 0")
    return (frame / fps) * 1000


def ms_to_frame(ms: float, fps: float) -> int:
    """Nearest frame for a time in ms; halves round up."""
    if fps <= 0:
        raise ValueError("fps must be > 0")
    return math.floor((ms / 1000) * fps + 0.5)


def frames_to_timecode(frames: float, fps: float) -> str:
    """Format a frame count as MM:SS:FF."""
    if fps <= 0:
        raise ValueError("fps must be > 0")
    total_seconds = frames / fps
    minutes = math.floor(total_seconds / 60)
    seconds = math.floor(total_seconds % 60)
    remaining_frames = math.floor(frames % fps)
    return f"{minutes:02d}:{seconds:02d}:{remaining_frames:02d}"
