"""
Exception classes for music-uploader.

Exception Hierarchy:
    MusicUploaderError (base)
        ConfigError - Configuration file issues
        AuthenticationError - Missing or rejected Apple Music tokens
        AppleMusicError - Apple Music API issues
        PlaylistFileError - A single playlist definition file is unusable
        QueryEncodingError - A track cannot be turned into a search term

Only ConfigError and AuthenticationError are meant to stop the program.
The other errors are caught inside the upload pipeline and downgraded to
log lines: a bad file skips that playlist, a failed search skips that track.
"""

from typing import Any, Dict, Optional


class MusicUploaderError(Exception):
    """
    Base exception for all music-uploader errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional context (file path,
                 search term, playlist id, original error, ...).
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


class ConfigError(MusicUploaderError):
    """
    Raised when the configuration is unusable.

    Common causes:
        - config.yaml has invalid YAML syntax
        - Invalid field values (e.g. concurrency below 1)
    """
    pass


class AuthenticationError(MusicUploaderError):
    """
    Raised when the Apple Music developer token or Music User Token is missing.

    This is a CRITICAL error: no request can be made without both tokens.
    """
    pass


class AppleMusicError(MusicUploaderError):
    """
    Raised when a request to the Apple Music API fails.

    Attributes:
        status: HTTP status code, or None for transport/decode failures.
        is_auth_error: True for 401/403 responses.
        is_rate_limit: True for 429 responses.

    Example:
        raise AppleMusicError(
            "Search request failed with status 500",
            details={'path': '/v1/catalog/au/search'},
            status=500
        )
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        status: Optional[int] = None,
    ) -> None:
        super().__init__(message, details)
        self.status = status
        self.is_auth_error = status in (401, 403)
        self.is_rate_limit = status == 429

    @property
    def is_transient(self) -> bool:
        """True when repeating the same request could succeed."""
        if self.status is None:
            return bool(self.details.get('transport_error'))
        return self.is_rate_limit or self.status >= 500


class PlaylistFileError(MusicUploaderError):
    """
    Raised when a playlist definition file cannot be read or parsed.

    NON-CRITICAL: the loader logs it and skips that file only.

    Example:
        raise PlaylistFileError(
            "Track 3 is missing 'artistName'",
            details={'file_path': '/path/to/Road Trip.json'}
        )
    """
    pass


class QueryEncodingError(MusicUploaderError):
    """
    Raised when a track's metadata cannot be percent-encoded.

    NON-CRITICAL: the track is reported as unresolved and skipped.
    """
    pass
