"""
Playback module for yt-play.

Usage:
    from yt_play.playback import build_queue, play

    outcome = play(build_queue(manifest, shuffle=True))
"""

from yt_play.playback.player import PlaybackOutcome, build_queue, play

__all__ = [
    "PlaybackOutcome",
    "build_queue",
    "play",
]
