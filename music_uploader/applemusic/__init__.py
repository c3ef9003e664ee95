"""
Apple Music integration package

client.py    - AppleMusicClient, the throttled aiohttp transport
catalog.py   - CatalogResolver, search term to top catalog song
playlists.py - RemotePlaylistManager, create/attach/list library playlists
models.py    - playlist definitions and parsed API resources
"""

from .client import AppleMusicClient
from .catalog import CatalogResolver
from .playlists import RemotePlaylistManager
from .models import (
    TrackId,
    PlaylistId,
    TrackDefinition,
    PlaylistDefinition,
    RemoteTrackMatch,
    RemotePlaylist,
    CreationStatus,
    PlaylistCreation,
)

__all__ = [
    'AppleMusicClient',
    'CatalogResolver',
    'RemotePlaylistManager',

    'TrackId',
    'PlaylistId',
    'TrackDefinition',
    'PlaylistDefinition',
    'RemoteTrackMatch',
    'RemotePlaylist',
    'CreationStatus',
    'PlaylistCreation',
]
