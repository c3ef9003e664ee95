"""
Playlist upload engine

Drives a complete upload run:

    load definitions -> for each playlist (sorted by name):
        resolve every track (file order) -> create remote playlist -> attach resolved tracks

Architecture Overview:
    - **TrackResolution**: outcome of resolving one track
    - **SyncResult**: per-playlist counts (attempted, resolved, attached)
    - **RunResult**: per-run outcome and the list of SyncResults
    - **PlaylistSynchronizer**: the orchestrator and owner of the run state

Failure policy:
    - A track that cannot be encoded or found is skipped and logged; later
      tracks are still processed.
    - A failed attach is logged; the created playlist stays and the run
      moves on to the next playlist.
    - A failed playlist creation stops the whole run (HALTED) unless
      sync.stop_on_create_failure is turned off, in which case only that
      playlist is skipped. Playlists created earlier in the run are kept.

Run state:
    The synchronizer exposes its state (IDLE, LOADING, RESOLVING, CREATING,
    ATTACHING). A run started while another is in progress returns
    RunResult(status=ALREADY_RUNNING) without doing anything. The state is
    back to IDLE whenever run() returns or raises.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional, Tuple, Union

from ..applemusic.catalog import CatalogResolver
from ..applemusic.client import AppleMusicClient
from ..applemusic.models import (
    CreationStatus,
    PlaylistDefinition,
    PlaylistId,
    RemoteTrackMatch,
    TrackDefinition,
    TrackId,
)
from ..applemusic.playlists import RemotePlaylistManager
from ..config.settings import get_settings, Settings
from ..exceptions import QueryEncodingError
from ..library.loader import PlaylistLoader
from ..utils.helpers import build_search_term
from ..utils.logger import create_operation_logger, get_logger, OperationLogger
from .pool import BoundedTaskPool


class RunState(Enum):
    """What the synchronizer is currently doing"""
    IDLE = "idle"
    LOADING = "loading"
    RESOLVING = "resolving"
    CREATING = "creating"
    ATTACHING = "attaching"


class RunStatus(Enum):
    """How a run ended"""
    COMPLETED = "completed"
    HALTED = "halted"
    ALREADY_RUNNING = "already_running"


@dataclass
class TrackResolution:
    """
    Outcome of resolving one track

    term is None when the track could not be turned into a search term;
    match is None when the search found nothing or failed.
    """
    track: TrackDefinition
    term: Optional[str] = None
    match: Optional[RemoteTrackMatch] = None
    error_message: Optional[str] = None

    @property
    def resolved(self) -> bool:
        return self.match is not None


@dataclass
class SyncResult:
    """
    Per-playlist upload report

    Attributes:
        playlist_name: Name of the playlist definition
        tracks_attempted: Tracks in the definition
        tracks_resolved: Tracks with a catalog match
        tracks_attached: Tracks the API accepted into the remote playlist
        playlist_id: Remote playlist id, None when creation failed
        creation_status: Outcome of the creation request
        attach_succeeded: Whether the attach request was accepted
        unresolved: "<track> by <artist>" for every track without a match
    """
    playlist_name: str
    tracks_attempted: int
    tracks_resolved: int = 0
    tracks_attached: int = 0
    playlist_id: Optional[PlaylistId] = None
    creation_status: Optional[CreationStatus] = None
    attach_succeeded: bool = False
    unresolved: List[str] = field(default_factory=list)

    @property
    def created(self) -> bool:
        return self.playlist_id is not None

    @property
    def summary(self) -> str:
        if not self.created:
            return f"{self.playlist_name}: playlist could not be created"
        if not self.attach_succeeded:
            return (
                f"{self.playlist_name}: created, adding {self.tracks_resolved} "
                f"out of {self.tracks_attempted} tracks failed"
            )
        return f"{self.playlist_name}: {self.tracks_attached} out of {self.tracks_attempted} added"


@dataclass
class RunResult:
    """Outcome of one upload run"""
    status: RunStatus
    playlists: List[SyncResult] = field(default_factory=list)
    halted_on: Optional[str] = None
    total_time: Optional[float] = None

    @property
    def playlists_created(self) -> int:
        return sum(1 for result in self.playlists if result.created)

    @property
    def tracks_attempted(self) -> int:
        return sum(result.tracks_attempted for result in self.playlists)

    @property
    def tracks_attached(self) -> int:
        return sum(result.tracks_attached for result in self.playlists)

    @property
    def summary(self) -> str:
        if self.status == RunStatus.ALREADY_RUNNING:
            return "Another upload run is already in progress"

        text = (
            f"{self.playlists_created} playlists created, "
            f"{self.tracks_attached} out of {self.tracks_attempted} tracks added"
        )
        if self.status == RunStatus.HALTED:
            text += f" (stopped at '{self.halted_on}')"
        return text


class PlaylistSynchronizer:
    """
    Orchestrates the upload of local playlist definitions to Apple Music

    Collaborators can be injected for testing; by default they are built
    around a single AppleMusicClient.
    """

    def __init__(
        self,
        client: Optional[AppleMusicClient] = None,
        settings: Optional[Settings] = None,
        resolver: Optional[CatalogResolver] = None,
        playlist_manager: Optional[RemotePlaylistManager] = None,
    ):
        self.settings = settings or get_settings()
        self.logger = get_logger(__name__)

        if client is None and (resolver is None or playlist_manager is None):
            client = AppleMusicClient(self.settings)
        self.client = client
        self.resolver = resolver or CatalogResolver(client)
        self.playlist_manager = playlist_manager or RemotePlaylistManager(client)

        self.pool = BoundedTaskPool(self.settings.sync.concurrency)
        self.stop_on_create_failure = self.settings.sync.stop_on_create_failure

        self._state = RunState.IDLE

    @property
    def state(self) -> RunState:
        return self._state

    def is_running(self) -> bool:
        return self._state != RunState.IDLE

    def load_playlists(self, directory: Optional[Union[str, Path]] = None) -> List[PlaylistDefinition]:
        """Load playlist definitions from `directory` or the configured directory"""
        if directory is None:
            directory = self.settings.get_playlists_directory()
        return PlaylistLoader(directory).load()

    def preview(
        self,
        directory: Optional[Union[str, Path]] = None,
    ) -> List[Tuple[PlaylistDefinition, List[Tuple[TrackDefinition, Optional[str]]]]]:
        """
        Load playlists and compute search terms without any network call

        Returns:
            (playlist, [(track, term or None when it cannot be encoded)]) per playlist
        """
        preview = []
        for playlist in self.load_playlists(directory):
            terms = []
            for track in playlist.tracks:
                try:
                    terms.append((track, build_search_term(track)))
                except QueryEncodingError:
                    terms.append((track, None))
            preview.append((playlist, terms))
        return preview

    async def resolve_track(self, track: TrackDefinition) -> TrackResolution:
        """
        Resolve one track to a catalog song

        Never raises: encoding failures and missed searches come back as an
        unresolved TrackResolution.
        """
        try:
            term = build_search_term(track)
        except QueryEncodingError as e:
            self.logger.warning(f"Search term for {track.display_name} could not be encoded: {e}")
            return TrackResolution(track=track, error_message=str(e))

        self.logger.debug(f"Term is {term}")
        match = await self.resolver.resolve(term)

        if match is None:
            self.logger.console_warning(f"Could not find {track.track_name} by {track.artist_name}.")
            return TrackResolution(track=track, term=term, error_message="No catalog match")

        self.logger.debug(f"Found {track.track_name} by {track.artist_name} ({match.id})")
        return TrackResolution(track=track, term=term, match=match)

    async def resolve_tracks(
        self,
        tracks: Tuple[TrackDefinition, ...],
        operation_logger: Optional[OperationLogger] = None,
    ) -> List[TrackResolution]:
        """Resolve tracks through the task pool; results keep file order"""

        def on_done(completed: int, resolution: TrackResolution) -> None:
            if operation_logger is not None:
                operation_logger.progress(resolution.track.display_name, completed, len(tracks))

        return await self.pool.map(self.resolve_track, tracks, on_done)

    async def sync_playlist(self, playlist: PlaylistDefinition, show_progress: bool = True) -> SyncResult:
        """
        Upload one playlist: resolve, create, attach

        Returns:
            SyncResult; result.created is False when the remote playlist
            could not be created (nothing was attached in that case)
        """
        operation_logger = create_operation_logger(__name__, f"Upload of '{playlist.name}'", show_progress)
        operation_logger.start(f"Running for: {playlist.name} ({len(playlist.tracks)} songs to add)")

        self._state = RunState.RESOLVING
        resolutions = await self.resolve_tracks(playlist.tracks, operation_logger)

        track_ids: List[TrackId] = [r.match.id for r in resolutions if r.resolved]
        result = SyncResult(
            playlist_name=playlist.name,
            tracks_attempted=len(playlist.tracks),
            tracks_resolved=len(track_ids),
            unresolved=[r.track.display_name for r in resolutions if not r.resolved],
        )

        self._state = RunState.CREATING
        creation = await self.playlist_manager.create_playlist(playlist.name)
        result.creation_status = creation.status

        if not creation.succeeded:
            operation_logger.error(creation.error_message or "playlist could not be created")
            return result

        result.playlist_id = creation.playlist.id
        self.logger.info(f"{playlist.name} playlist created ({creation.playlist.id})")

        self._state = RunState.ATTACHING
        self.logger.info(f"Adding {len(track_ids)} out of {len(playlist.tracks)}...")
        result.attach_succeeded = await self.playlist_manager.add_tracks(creation.playlist.id, track_ids)
        result.tracks_attached = len(track_ids) if result.attach_succeeded else 0

        if result.attach_succeeded:
            operation_logger.complete(result.summary)
        else:
            operation_logger.warning(f"tracks could not be added to {creation.playlist.id}")
        return result

    async def run(
        self,
        directory: Optional[Union[str, Path]] = None,
        show_progress: bool = True,
    ) -> RunResult:
        """
        Upload every playlist definition in the directory

        Args:
            directory: Playlist directory, defaults to library.playlists_directory
            show_progress: Draw progress bars while resolving tracks

        Returns:
            RunResult with one SyncResult per processed playlist
        """
        if self.is_running():
            self.logger.warning("An upload run is already in progress, ignoring this one")
            return RunResult(status=RunStatus.ALREADY_RUNNING)

        self._state = RunState.LOADING
        start_time = time.time()
        result = RunResult(status=RunStatus.COMPLETED)

        try:
            playlists = self.load_playlists(directory)
            self.logger.console_info(f"{len(playlists)} playlists to upload")

            for playlist in playlists:
                sync_result = await self.sync_playlist(playlist, show_progress)
                result.playlists.append(sync_result)

                if not sync_result.created and self.stop_on_create_failure:
                    self.logger.console_error(
                        f"Stopping run: playlist '{playlist.name}' could not be created"
                    )
                    result.status = RunStatus.HALTED
                    result.halted_on = playlist.name
                    break
        finally:
            self._state = RunState.IDLE
            result.total_time = time.time() - start_time

        self.logger.info(f"Run finished: {result.summary}")
        return result
