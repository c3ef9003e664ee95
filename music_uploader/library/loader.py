"""
Playlist definition loading

A playlist directory holds one JSON file per playlist:

    Road Trip.json
    {"tracks": [{"trackNumber": 1, "trackName": "...", "artistName": "...", "albumName": "..."}]}

The playlist name is the file name without its extension. Files that cannot
be read or parsed are logged and skipped; the rest still load.
"""

import json
from pathlib import Path
from typing import List, Union

from ..applemusic.models import PlaylistDefinition
from ..exceptions import PlaylistFileError
from ..utils.logger import get_logger


logger = get_logger(__name__)


def load_playlist_file(file_path: Path) -> PlaylistDefinition:
    """
    Parse a single playlist definition file

    Args:
        file_path: Path of the JSON file

    Returns:
        Playlist named after the file's base name

    Raises:
        PlaylistFileError: If the file cannot be read, decoded or has the wrong shape
    """
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise PlaylistFileError(
            f"Cannot read {file_path.name}: {e}",
            details={'file_path': str(file_path)}
        ) from e

    try:
        return PlaylistDefinition.from_file_data(file_path.stem, data)
    except PlaylistFileError as e:
        e.details.setdefault('file_path', str(file_path))
        raise


class PlaylistLoader:
    """Load every playlist definition in a directory"""

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory).expanduser()
        self.logger = logger

    def _list_files(self) -> List[Path]:
        # Hidden files (.DS_Store and friends) are never playlists
        return [
            path for path in self.directory.iterdir()
            if path.is_file() and not path.name.startswith('.')
        ]

    def load(self) -> List[PlaylistDefinition]:
        """
        Load and sort the playlists

        Returns:
            Playlists sorted case-insensitively by name. Empty when the
            directory cannot be listed.
        """
        try:
            files = self._list_files()
        except OSError as e:
            self.logger.error(f"Cannot read playlist directory {self.directory}: {e}")
            return []

        playlists = []
        for file_path in sorted(files):
            try:
                playlist = load_playlist_file(file_path)
            except PlaylistFileError as e:
                self.logger.warning(f"Skipping playlist file {file_path.name}: {e}")
                continue

            self.logger.debug(f"Loaded '{playlist.name}' with {len(playlist.tracks)} tracks")
            playlists.append(playlist)

        playlists.sort(key=lambda playlist: playlist.name.lower())
        self.logger.info(f"Loaded {len(playlists)} playlists from {self.directory}")
        return playlists
