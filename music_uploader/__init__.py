"""
Music-Uploader: Recreate local playlist definitions as Apple Music library playlists

A playlist directory holds one JSON file per playlist. Every track in a file is
turned into a catalog search term, matched against the Apple Music catalog
(first result wins) and attached to a freshly created library playlist named
after the file.

## Package Layout

**Configuration (`music_uploader/config/`)**
- YAML settings with environment variable overrides
- Developer token and Music User Token handling

**Apple Music Integration (`music_uploader/applemusic/`)**
- Throttled aiohttp client for the Apple Music API
- Catalog search resolution and library playlist management
- Data models for playlist definitions and API resources

**Local Library (`music_uploader/library/`)**
- Discovery and parsing of playlist definition files

**Upload Engine (`music_uploader/sync/`)**
- Run orchestration, failure policy and result reporting

**Utilities (`music_uploader/utils/`)**
- Logging, search term building, retry and validation helpers

## Quick Start

```bash
pip install -e .

export APPLE_MUSIC_DEVELOPER_TOKEN=...
music-upload auth set-token MUSIC_USER_TOKEN

music-upload preview ~/Playlists
music-upload run ~/Playlists
```
"""

# Version information for the Music-Uploader package
__version__ = "0.3.0"

__author__ = "Verryx-02"

__email__ = "verryx_github.untaken971@passinbox.com"

__description__ = "Upload local JSON playlist definitions to an Apple Music library"

__all__ = [
    "__version__",
    "__author__",
    "__email__",
    "__description__"
]
