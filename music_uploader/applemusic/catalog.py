"""
Catalog resolution: search term -> top catalog song

One search per track, top result only. Failures are downgraded to
"not found" so a single bad track never stops a playlist.
"""

from typing import Optional

from ..exceptions import MusicUploaderError
from ..utils.logger import get_logger
from .client import AppleMusicClient
from .models import RemoteTrackMatch


class CatalogResolver:
    """Resolve normalized search terms against the configured storefront"""

    def __init__(self, client: AppleMusicClient):
        self.client = client
        self.logger = get_logger(__name__)

    @property
    def storefront(self) -> str:
        return self.client.storefront

    async def resolve(self, term: str) -> Optional[RemoteTrackMatch]:
        """
        Find the top catalog song for a search term

        Args:
            term: Term produced by build_search_term

        Returns:
            The first search result, or None when nothing matched or the
            search failed
        """
        try:
            matches = await self.client.search_songs(term, limit=1)
        except MusicUploaderError as e:
            self.logger.error(f"Search failed for term '{term}': {e}")
            return None

        if not matches:
            self.logger.debug(f"No catalog result for term '{term}'")
            return None

        return matches[0]
