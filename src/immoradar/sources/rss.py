"""
Fuente: feeds RSS/Atom de noticias y portales inmobiliarios.
"""

from typing import Any, Iterator, Optional

import feedparser
import structlog
from pydantic import ValidationError
from tenacity import retry, stop_after_attempt, wait_exponential

from immoradar.config import MAX_ITEMS_PER_FEED, Settings
from immoradar.exceptions import SourceError
from immoradar.ingestion.extractor import extract_from_text
from immoradar.models import CandidateRecord
from immoradar.sources.base import BaseSourceAdapter

logger = structlog.get_logger()


class RssFeedAdapter(BaseSourceAdapter):
    """
    Adaptador de feeds RSS.

    Procesa como máximo MAX_ITEMS_PER_FEED items por feed; los items sin
    título o sin link se descartan.
    """

    SOURCE_NAME = "rss"
    MATCH_DISTRICT = True

    def __init__(
        self,
        settings: Optional[Settings] = None,
        max_items: int = MAX_ITEMS_PER_FEED,
    ):
        super().__init__(settings)
        self.max_items = max_items

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def fetch_raw(self, descriptor: str) -> str:
        headers = {
            "User-Agent": self.settings.rss_user_agent,
            "Accept": "application/rss+xml, application/atom+xml, application/xml;q=0.9, */*;q=0.8",
        }
        async with self._session(headers=headers) as session:
            async with session.get(descriptor) as response:
                response.raise_for_status()
                return await response.text()

    def parse(self, payload: Any, descriptor: str) -> Iterator[CandidateRecord]:
        feed = feedparser.parse(payload)
        if feed.bozo and not feed.entries:
            raise SourceError(self.SOURCE_NAME, descriptor, f"Feed ilegible: {feed.bozo_exception}")

        for entry in feed.entries[:self.max_items]:
            title = (entry.get("title") or "").strip()
            link = (entry.get("link") or "").strip()
            if not title or not link:
                logger.debug("Item RSS sin título o link", feed=descriptor)
                continue

            description = entry.get("summary") or entry.get("description") or ""
            try:
                yield extract_from_text(
                    title,
                    description,
                    source_name=self.SOURCE_NAME,
                    source_url=link,
                )
            except ValidationError as e:
                logger.warning("Item RSS inválido", feed=descriptor, error=str(e))
