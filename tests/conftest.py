"""Test configuration and fixtures"""

import json
import tempfile
from pathlib import Path
from unittest.mock import AsyncMock, Mock

import pytest
import yaml

from music_uploader.applemusic.models import (
    PlaylistId,
    RemotePlaylist,
    RemoteTrackMatch,
    TrackId,
)
from music_uploader.config.settings import Settings


ENV_VARS = (
    'APPLE_MUSIC_DEVELOPER_TOKEN',
    'APPLE_MUSIC_USER_TOKEN',
    'APPLE_MUSIC_STOREFRONT',
    'MUSIC_UPLOADER_PLAYLISTS_DIR',
)


@pytest.fixture
def temp_dir():
    """Create temporary directory for tests"""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove token and directory overrides coming from the environment"""
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    return monkeypatch


@pytest.fixture
def settings(temp_dir, clean_env):
    """Settings loaded from a temporary config file with test tokens"""
    config = {
        'applemusic': {
            'developer_token': 'dev-token',
            'user_token': 'user-token',
            'storefront': 'au',
        },
        'library': {'playlists_directory': str(temp_dir / 'Playlists')},
        'network': {'requests_per_second': 1000, 'retry_delay': 0},
        'security': {
            'token_storage_path': str(temp_dir / 'tokens.json'),
            'config_directory': str(temp_dir / 'config'),
        },
    }
    config_path = temp_dir / 'config.yaml'
    config_path.write_text(yaml.safe_dump(config), encoding='utf-8')
    return Settings(str(config_path))


@pytest.fixture
def playlist_dir(temp_dir):
    """Empty playlist directory"""
    directory = temp_dir / 'Playlists'
    directory.mkdir()
    return directory


@pytest.fixture
def write_playlist(playlist_dir):
    """Write a playlist definition file; tracks are given as (track, artist, album)"""
    def write(name, tracks, extension='.json'):
        data = {
            'tracks': [
                {'trackNumber': number, 'trackName': track, 'artistName': artist, 'albumName': album}
                for number, (track, artist, album) in enumerate(tracks, start=1)
            ]
        }
        path = playlist_dir / f"{name}{extension}"
        path.write_text(json.dumps(data), encoding='utf-8')
        return path
    return write


def make_match(track_id, name='Song', artist='Artist', album='Album'):
    return RemoteTrackMatch(id=TrackId(track_id), name=name, album_name=album, artist_name=artist)


def make_playlist(playlist_id, name):
    return RemotePlaylist(id=PlaylistId(playlist_id), name=name, can_edit=True)


@pytest.fixture
def fake_client():
    """
    Stand-in for AppleMusicClient

    Searches find nothing, creation echoes a collection holding the new
    playlist (id "p.<name>") and attaches answer 204.
    """
    async def created(name):
        return [make_playlist(f"p.{name}", name)]

    client = Mock()
    client.storefront = 'au'
    client.search_songs = AsyncMock(return_value=[])
    client.create_library_playlist = AsyncMock(side_effect=created)
    client.add_library_playlist_tracks = AsyncMock(return_value=204)
    client.get_library_playlists = AsyncMock(return_value=[])
    return client


@pytest.fixture
def sample_song_data():
    """Catalog song resource as returned by the search endpoint"""
    return {
        'id': '1440857781',
        'type': 'songs',
        'href': '/v1/catalog/au/songs/1440857781',
        'attributes': {
            'name': 'I Miss You',
            'albumName': 'blink-182',
            'artistName': 'blink-182',
            'url': 'https://music.apple.com/au/album/i-miss-you/1440857324?i=1440857781',
        },
    }


@pytest.fixture
def sample_playlist_data():
    """Library playlist resource as returned by the creation endpoint"""
    return {
        'id': 'p.ZOAXAMYsZeNa6q',
        'type': 'library-playlists',
        'href': '/v1/me/library/playlists/p.ZOAXAMYsZeNa6q',
        'attributes': {
            'canEdit': True,
            'name': 'Road Trip',
            'isPublic': False,
            'hasCatalog': False,
            'description': {'standard': 'Songs for the car'},
            'playParams': {'id': 'p.ZOAXAMYsZeNa6q', 'kind': 'playlist', 'isLibrary': True},
        },
    }
