"""
Configuration package for music-uploader

settings.py holds the YAML/environment backed Settings singleton,
auth.py the Apple Music token lookup and storage.

    from music_uploader.config import get_settings, get_auth

    settings = get_settings()
    headers = get_auth().get_headers()
"""

from .settings import get_settings, reload_settings, Settings

from .auth import get_auth, reset_auth, AppleMusicAuth

__all__ = [
    'get_settings',
    'reload_settings',
    'Settings',

    'get_auth',
    'reset_auth',
    'AppleMusicAuth'
]
