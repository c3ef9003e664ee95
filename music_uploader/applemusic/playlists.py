"""
Library playlist management: create a playlist, attach songs, list playlists
"""

from typing import List, Sequence

from ..exceptions import MusicUploaderError
from ..utils.logger import get_logger
from .client import AppleMusicClient
from .models import (
    CreationStatus,
    PlaylistCreation,
    PlaylistId,
    RemotePlaylist,
    TrackId,
)


class RemotePlaylistManager:
    """Create and populate playlists in the user's Apple Music library"""

    def __init__(self, client: AppleMusicClient):
        self.client = client
        self.logger = get_logger(__name__)

    async def create_playlist(self, name: str) -> PlaylistCreation:
        """
        Create a library playlist named `name`

        The creation response is a playlist collection rather than the new
        object, so the result is the first entry whose name equals `name`
        exactly. Several entries with that name give MULTIPLE_MATCHES with the
        first one selected.

        Returns:
            PlaylistCreation; never raises
        """
        try:
            playlists = await self.client.create_library_playlist(name)
        except MusicUploaderError as e:
            self.logger.error(f"Failed to create playlist '{name}': {e}")
            return PlaylistCreation(status=CreationStatus.FAILED, name=name, error_message=str(e))

        matches = [playlist for playlist in playlists if playlist.name == name]

        if not matches:
            self.logger.error(
                f"Playlist '{name}' not found in creation response ({len(playlists)} entries)"
            )
            return PlaylistCreation(
                status=CreationStatus.NOT_FOUND,
                name=name,
                error_message="No playlist with that name in the creation response"
            )

        if len(matches) > 1:
            self.logger.warning(
                f"{len(matches)} playlists named '{name}' in creation response, using {matches[0].id}"
            )
            return PlaylistCreation(
                status=CreationStatus.MULTIPLE_MATCHES,
                name=name,
                playlist=matches[0],
                matches=len(matches)
            )

        self.logger.debug(f"Created playlist '{name}' ({matches[0].id})")
        return PlaylistCreation(
            status=CreationStatus.CREATED,
            name=name,
            playlist=matches[0],
            matches=1
        )

    async def add_tracks(self, playlist_id: PlaylistId, track_ids: Sequence[TrackId]) -> bool:
        """
        Append songs to a library playlist in the given order

        An empty list is still sent and counts as success. A failure is
        logged and reported; the playlist is left in place.

        Returns:
            True if the API accepted the request
        """
        try:
            status = await self.client.add_library_playlist_tracks(playlist_id, list(track_ids))
        except MusicUploaderError as e:
            self.logger.error(
                f"Failed to add {len(track_ids)} tracks to playlist {playlist_id}: {e}"
            )
            return False

        self.logger.info(f"Added {len(track_ids)} tracks to playlist {playlist_id} (status {status})")
        return True

    async def list_playlists(self) -> List[RemotePlaylist]:
        """
        List the user's library playlists

        Raises:
            AppleMusicError: If the listing fails
        """
        return await self.client.get_library_playlists()
