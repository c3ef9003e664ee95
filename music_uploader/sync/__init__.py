"""
Upload engine package

The upload engine turns a directory of playlist definitions into Apple Music
library playlists. It is built from two pieces:

1. **Task Pool (pool.py)**:
   - Bounded, order-preserving map over coroutines
   - Strictly sequential when only one worker is configured

2. **Synchronizer (synchronizer.py)**:
   - Loads definitions, resolves tracks, creates playlists, attaches tracks
   - Skips tracks that cannot be resolved and keeps going
   - Stops the run when a playlist cannot be created
   - Reports per-playlist SyncResults inside a RunResult

Usage Examples:

    async with AppleMusicClient() as client:
        synchronizer = PlaylistSynchronizer(client)
        result = await synchronizer.run("~/Playlists")
        print(result.summary)
"""

from .pool import BoundedTaskPool
from .synchronizer import (
    PlaylistSynchronizer,
    RunResult,
    RunState,
    RunStatus,
    SyncResult,
    TrackResolution,
)

__all__ = [
    'BoundedTaskPool',

    'PlaylistSynchronizer',
    'RunResult',
    'RunState',
    'RunStatus',
    'SyncResult',
    'TrackResolution',
]
