"""
Local playlist library: reading playlist definition files from disk
"""

from .loader import PlaylistLoader, load_playlist_file

__all__ = [
    'PlaylistLoader',
    'load_playlist_file',
]
