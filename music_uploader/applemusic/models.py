"""
Data models for playlist definitions and Apple Music resources

Local side:
- TrackDefinition: one track of a playlist definition file
- PlaylistDefinition: a named, ordered, immutable list of tracks

Remote side (parsed from Apple Music API responses):
- RemoteTrackMatch: the top catalog search result for one track
- RemotePlaylist: a library playlist
- PlaylistCreation: the typed outcome of a playlist creation request

Catalog song ids and library playlist ids are both opaque strings in the
API. They get distinct types (TrackId, PlaylistId) so one cannot be passed
where the other is expected.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, NewType, Optional, Tuple

from ..exceptions import PlaylistFileError


TrackId = NewType('TrackId', str)
PlaylistId = NewType('PlaylistId', str)


# File key -> (attribute name, expected type)
TRACK_FIELDS = {
    'trackNumber': ('track_number', int),
    'trackName': ('track_name', str),
    'artistName': ('artist_name', str),
    'albumName': ('album_name', str),
}


@dataclass(frozen=True)
class TrackDefinition:
    """
    A track to add, as written in a playlist definition file

    Attributes:
        track_number: Position label from the file (not used for ordering)
        track_name: Song title
        artist_name: Artist credit
        album_name: Album title
    """
    track_number: int
    track_name: str
    artist_name: str
    album_name: str

    @classmethod
    def from_file_data(cls, data: Dict[str, Any], index: int = 0) -> 'TrackDefinition':
        """
        Create a track from one entry of the file's "tracks" array

        Unknown keys are ignored.

        Args:
            data: Decoded JSON object for the track
            index: Position of the entry in the array, used in error messages

        Raises:
            PlaylistFileError: If a required key is missing or has the wrong type
        """
        if not isinstance(data, dict):
            raise PlaylistFileError(f"Track {index} is not an object")

        values = {}
        for key, (attribute, expected_type) in TRACK_FIELDS.items():
            if key not in data:
                raise PlaylistFileError(f"Track {index} is missing '{key}'")
            value = data[key]
            # bool is a subclass of int but never a valid track number
            if not isinstance(value, expected_type) or isinstance(value, bool):
                raise PlaylistFileError(
                    f"Track {index} field '{key}' must be {expected_type.__name__}, "
                    f"got {type(value).__name__}"
                )
            values[attribute] = value

        return cls(**values)

    @property
    def display_name(self) -> str:
        return f"{self.track_name} by {self.artist_name}"


@dataclass(frozen=True)
class PlaylistDefinition:
    """
    A playlist to upload

    The name comes from the definition file's base name, never from its
    content. Track order is the file order.
    """
    name: str
    tracks: Tuple[TrackDefinition, ...]

    @classmethod
    def from_file_data(cls, name: str, data: Any) -> 'PlaylistDefinition':
        """
        Create a playlist from a decoded definition file

        Args:
            name: Playlist name derived from the file name
            data: Decoded JSON document, expected shape {"tracks": [...]}

        Raises:
            PlaylistFileError: If the document does not have the expected shape
        """
        if not isinstance(data, dict):
            raise PlaylistFileError("Playlist file must contain a JSON object")

        raw_tracks = data.get('tracks')
        if not isinstance(raw_tracks, list):
            raise PlaylistFileError("Playlist file must contain a 'tracks' array")

        tracks = tuple(
            TrackDefinition.from_file_data(entry, index)
            for index, entry in enumerate(raw_tracks)
        )
        return cls(name=name, tracks=tracks)

    def __len__(self) -> int:
        return len(self.tracks)


def _resource_attributes(data: Any) -> Dict[str, Any]:
    """Return the attributes object of an API resource, {} when absent"""
    if not isinstance(data, dict):
        raise ValueError(f"Resource is not an object: {data!r}")
    attributes = data.get('attributes') or {}
    if not isinstance(attributes, dict):
        raise ValueError(f"Resource attributes are not an object: {attributes!r}")
    return attributes


@dataclass
class RemoteTrackMatch:
    """Top catalog search result for a track"""
    id: TrackId
    name: str
    album_name: str
    artist_name: str
    url: Optional[str] = None
    href: Optional[str] = None
    type: str = "songs"

    @classmethod
    def from_api_data(cls, data: Dict[str, Any]) -> 'RemoteTrackMatch':
        """
        Create a match from a catalog song resource

        Raises:
            KeyError: If the resource has no id
            ValueError: If the resource or its attributes are not objects
        """
        attributes = _resource_attributes(data)
        return cls(
            id=TrackId(data['id']),
            name=attributes.get('name', ''),
            album_name=attributes.get('albumName', ''),
            artist_name=attributes.get('artistName', ''),
            url=attributes.get('url'),
            href=data.get('href'),
            type=data.get('type', 'songs'),
        )


@dataclass
class RemotePlaylist:
    """
    Library playlist as returned by the Apple Music API

    Capability and visibility attributes are passed through untouched.
    """
    id: PlaylistId
    name: str
    can_edit: bool = False
    is_public: bool = False
    has_catalog: bool = False
    description: Optional[str] = None
    play_params: Dict[str, Any] = field(default_factory=dict)
    artwork: Optional[Dict[str, Any]] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_api_data(cls, data: Dict[str, Any]) -> 'RemotePlaylist':
        """
        Create a playlist from a library playlist resource

        Raises:
            KeyError: If the resource has no id or no name
            ValueError: If the resource or its attributes are not objects
        """
        attributes = _resource_attributes(data)
        description = attributes.get('description')
        if isinstance(description, dict):
            description = description.get('standard')

        return cls(
            id=PlaylistId(data['id']),
            name=attributes['name'],
            can_edit=attributes.get('canEdit', False),
            is_public=attributes.get('isPublic', False),
            has_catalog=attributes.get('hasCatalog', False),
            description=description,
            play_params=attributes.get('playParams') or {},
            artwork=attributes.get('artwork'),
            raw=data,
        )

    @property
    def global_id(self) -> Optional[str]:
        return self.play_params.get('globalId')


class CreationStatus(Enum):
    """Outcome of a playlist creation request"""
    CREATED = "created"
    MULTIPLE_MATCHES = "multiple_matches"
    NOT_FOUND = "not_found"
    FAILED = "failed"


@dataclass
class PlaylistCreation:
    """
    Result of RemotePlaylistManager.create_playlist

    The creation endpoint answers with a collection, so the new playlist is
    picked by exact name. MULTIPLE_MATCHES still carries the first match.
    """
    status: CreationStatus
    name: str
    playlist: Optional[RemotePlaylist] = None
    matches: int = 0
    error_message: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.playlist is not None


def parse_collection(payload: Any, parser) -> List[Any]:
    """
    Parse the "data" array of an API collection response

    Raises:
        ValueError: If the payload has no "data" array or an item is not an object
    """
    if not isinstance(payload, dict) or not isinstance(payload.get('data'), list):
        raise ValueError("Response has no 'data' collection")
    for item in payload['data']:
        if not isinstance(item, dict):
            raise ValueError(f"Collection item is not an object: {item!r}")
    return [parser(item) for item in payload['data']]
