"""
Apple Music credential management

Every library request needs two tokens:
1. The developer token, a signed JWT issued for the Apple developer account
2. The Music User Token, granted by the user through the MusicKit
   authorization flow

The interactive authorization flow itself is handled outside this tool.
This module reads both tokens from settings and environment, persists the
Music User Token to the token storage file when the user hands it over with
`music-upload auth set-token`, and builds the request headers.

Security considerations:
- Tokens stored with restrictive file permissions (600)
- Tokens are never written to config.yaml
"""

import json
import logging
from datetime import datetime
from typing import Dict, Optional, Any

from .settings import get_settings
from ..exceptions import AuthenticationError


class AppleMusicAuth:
    """
    Token lookup and storage for Apple Music API access

    Lookup order for the Music User Token: settings/environment first, then
    the token storage file. The developer token only comes from settings or
    environment.

    Attributes:
        settings: Application settings instance
        token_file: Path to the token storage file
    """

    def __init__(self):
        self.settings = get_settings()
        self.logger = logging.getLogger(__name__)
        self.token_file = self.settings.get_token_storage_path()
        self._token_info: Optional[Dict[str, Any]] = None

    def _load_token(self) -> Optional[Dict[str, Any]]:
        """
        Load the stored token file

        Returns:
            Token dictionary if the file exists and holds a user token, None otherwise
        """
        if not self.token_file.exists():
            return None

        try:
            with open(self.token_file, 'r', encoding='utf-8') as f:
                token_data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            self.logger.warning(f"Failed to load stored token: {e}")
            return None

        if isinstance(token_data, dict) and token_data.get('music_user_token'):
            return token_data

        self.logger.warning("Invalid token structure in token file, ignoring it")
        return None

    def save_user_token(self, user_token: str) -> None:
        """
        Store the Music User Token with owner-only permissions

        Args:
            user_token: Token obtained from the MusicKit authorization flow
        """
        self.token_file.parent.mkdir(parents=True, exist_ok=True)

        token_data = {
            'music_user_token': user_token,
            'saved_at': datetime.now().isoformat(),
            'storefront': self.settings.applemusic.storefront,
        }

        with open(self.token_file, 'w', encoding='utf-8') as f:
            json.dump(token_data, f, indent=2)

        try:
            self.token_file.chmod(0o600)
        except OSError:
            # Windows doesn't support chmod
            pass

        self._token_info = token_data
        self.logger.info(f"Music User Token saved to {self.token_file}")

    @property
    def developer_token(self) -> str:
        return self.settings.applemusic.developer_token

    @property
    def user_token(self) -> str:
        if self.settings.applemusic.user_token:
            return self.settings.applemusic.user_token
        if self._token_info is None:
            self._token_info = self._load_token()
        if self._token_info:
            return self._token_info['music_user_token']
        return ""

    def is_authenticated(self) -> bool:
        """True when both tokens are available"""
        return bool(self.developer_token and self.user_token)

    def get_headers(self) -> Dict[str, str]:
        """
        Build the authorization headers for an Apple Music request

        Raises:
            AuthenticationError: If either token is missing
        """
        if not self.developer_token:
            raise AuthenticationError(
                "Apple Music developer token is not configured "
                "(set APPLE_MUSIC_DEVELOPER_TOKEN)"
            )
        if not self.user_token:
            raise AuthenticationError(
                "Music User Token is not configured "
                "(set APPLE_MUSIC_USER_TOKEN or run 'music-upload auth set-token')"
            )

        return {
            'Authorization': f"Bearer {self.developer_token}",
            'Music-User-Token': self.user_token,
        }

    def revoke_token(self) -> None:
        """Delete the stored Music User Token"""
        self._token_info = None
        if self.token_file.exists():
            self.token_file.unlink()
            self.logger.info("Stored Music User Token removed")


# Global authentication instance management
_auth_instance: Optional[AppleMusicAuth] = None


def get_auth() -> AppleMusicAuth:
    """Get the global authentication instance (singleton pattern)"""
    global _auth_instance
    if not _auth_instance:
        _auth_instance = AppleMusicAuth()
    return _auth_instance


def reset_auth() -> None:
    """
    Reset the global authentication instance

    Only clears the in-memory instance. Use AppleMusicAuth.revoke_token()
    to delete the stored token.
    """
    global _auth_instance
    _auth_instance = None
