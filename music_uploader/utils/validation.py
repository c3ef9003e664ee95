"""
Input validation utilities
"""
import os
import re
from pathlib import Path
from typing import Optional, Tuple


def validate_storefront(storefront: str) -> Tuple[bool, Optional[str]]:
    """
    Validate Apple Music storefront code

    Storefronts are ISO 3166-1 alpha-2 country codes in lower case ("au", "us").

    Args:
        storefront: Storefront code

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not storefront:
        return False, "Storefront cannot be empty"

    if not re.match(r'^[a-z]{2}$', storefront):
        return False, f"Invalid storefront: {storefront}. Expected a two-letter lower case country code"

    return True, None


def validate_playlists_directory(path: str) -> Tuple[bool, Optional[str]]:
    """
    Validate the playlist definitions directory

    Args:
        path: Directory path to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not path:
        return False, "Playlists directory cannot be empty"

    path_obj = Path(path).expanduser()

    if not path_obj.exists():
        return False, f"Directory does not exist: {path_obj}"

    if not path_obj.is_dir():
        return False, f"Not a directory: {path_obj}"

    if not os.access(path_obj, os.R_OK):
        return False, f"Directory is not readable: {path_obj}"

    return True, None


def validate_concurrency(value: int) -> Tuple[bool, Optional[str]]:
    """
    Validate concurrent search count

    Args:
        value: Requested number of concurrent searches

    Returns:
        Tuple of (is_valid, error_message)
    """
    if value < 1 or value > 10:
        return False, "Concurrency must be between 1 and 10"

    return True, None
