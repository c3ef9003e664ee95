"""
Utility helper functions for music-uploader
"""

import asyncio
import functools
import logging
from typing import Callable, Union, TYPE_CHECKING
from urllib.parse import quote

from ..exceptions import QueryEncodingError, AppleMusicError

if TYPE_CHECKING:
    from ..applemusic.models import TrackDefinition


# Applied in order after spaces become '+'. '&' must be translated before
# the punctuation is stripped.
SEARCH_TERM_SUBSTITUTIONS = (
    ('&', 'and'),
    ("'", ''),
    ('.', ''),
    (',', ''),
)


def build_search_term(track: 'TrackDefinition') -> str:
    """
    Turn a track definition into a URL-safe catalog search term

    "<track> <artist> <album>" has its spaces replaced by '+', '&' replaced
    by 'and', apostrophes, periods and commas removed, and everything else
    that is not safe in a query component percent-encoded. The '+'
    delimiters are left as they are.

    Args:
        track: Track to build the term for

    Returns:
        Search term ready to be placed in the query string

    Raises:
        QueryEncodingError: If the metadata cannot be encoded (e.g. lone surrogates)
    """
    term = f"{track.track_name} {track.artist_name} {track.album_name}".replace(' ', '+')

    for old, new in SEARCH_TERM_SUBSTITUTIONS:
        term = term.replace(old, new)

    try:
        return quote(term, safe='+')
    except UnicodeEncodeError as e:
        raise QueryEncodingError(
            f"Cannot encode search term for {track.track_name!r}: {e}",
            details={'track_name': track.track_name, 'artist_name': track.artist_name}
        )


def format_duration(seconds: Union[int, float]) -> str:
    """
    Format duration in seconds to human readable string

    Args:
        seconds: Duration in seconds

    Returns:
        Formatted duration (MM:SS or HH:MM:SS)
    """
    if seconds < 0:
        return "0:00"

    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = int(seconds % 60)

    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def truncate_string(text: str, max_length: int, suffix: str = "...") -> str:
    """
    Truncate string to maximum length with suffix

    Args:
        text: Text to truncate
        max_length: Maximum length
        suffix: Suffix to add when truncating

    Returns:
        Truncated string
    """
    if len(text) <= max_length:
        return text

    return text[:max_length - len(suffix)] + suffix


def retry_on_failure(
    max_attempts: int = 1,
    delay: float = 1.0,
    backoff: float = 2.0,
    should_retry: Callable[[Exception], bool] = None,
):
    """
    Decorator for retrying coroutine functions on failure

    Only AppleMusicError instances accepted by should_retry (transient ones
    by default) are retried; anything else propagates immediately.

    Args:
        max_attempts: Maximum number of attempts, 1 means no retry
        delay: Initial delay between attempts in seconds
        backoff: Delay multiplier for exponential backoff
        should_retry: Predicate deciding whether an error is worth retrying
    """
    if should_retry is None:
        def should_retry(error: Exception) -> bool:
            return isinstance(error, AppleMusicError) and error.is_transient

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            current_delay = delay
            for attempt in range(1, max_attempts + 1):
                try:
                    return await func(*args, **kwargs)
                except Exception as e:
                    if attempt >= max_attempts or not should_retry(e):
                        raise
                    logging.getLogger(func.__module__).debug(
                        f"{func.__name__} attempt {attempt}/{max_attempts} failed: {e}; "
                        f"retrying in {current_delay:.1f}s"
                    )
                    await asyncio.sleep(current_delay)
                    current_delay *= backoff
        return wrapper
    return decorator
