import asyncio
import logging
from typing import List, Optional
from urllib.parse import urlparse

import aiohttp
from bs4 import BeautifulSoup
from tqdm import tqdm

from ..models.link_page import LinkEntry
from .cache_manager import CacheManager

logger = logging.getLogger(__name__)

USER_AGENT = 'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36'


def extract_title(html: str) -> Optional[str]:
    soup = BeautifulSoup(html, 'html.parser')
    if soup.title and soup.title.string:
        title = ' '.join(soup.title.string.split())
        return title or None
    return None


def fallback_label(entry: LinkEntry) -> str:
    """Generic label built from the URL when no title could be fetched."""
    if 'github.com' in (entry.domain or ''):
        parts = urlparse(entry.url).path.strip('/').split('/')
        if len(parts) >= 2 and all(parts[:2]):
            owner, repo = parts[0], parts[1]
            return f"GitHub: {owner}/{repo}"
        return "GitHub Repository"
    domain = entry.domain or urlparse(entry.url).netloc
    return f"Link from {domain}"


class TitleFetcher:
    """Fills in labels for link entries that were written without one."""

    def __init__(self, timeout: int = 5, concurrent_requests: int = 10,
                 cache: Optional[CacheManager] = None):
        self.timeout = timeout
        self.concurrent_requests = max(1, concurrent_requests)
        self.cache = cache

    async def fetch_title(self, url: str, session: Optional[aiohttp.ClientSession] = None) -> Optional[str]:
        """Fetch page title asynchronously with caching."""
        if self.cache:
            cached = self.cache.get_cached_title(url)
            if cached:
                return cached

        if session is None:
            timeout = aiohttp.ClientTimeout(total=self.timeout)
            async with aiohttp.ClientSession(timeout=timeout, headers={'User-Agent': USER_AGENT}) as own_session:
                return await self.fetch_title(url, own_session)

        try:
            async with session.get(url, allow_redirects=True) as response:
                if response.status != 200:
                    logger.debug(f"No title for {url}: HTTP {response.status}")
                    return None
                html = await response.text(errors='replace')
        except (aiohttp.ClientError, asyncio.TimeoutError, UnicodeDecodeError) as e:
            logger.debug(f"Failed to fetch title for {url}: {e}")
            return None

        title = extract_title(html)
        if title and self.cache:
            self.cache.update_cache(url, title)
        return title

    async def fetch_missing_titles(self, entries: List[LinkEntry]) -> List[LinkEntry]:
        """Label every unlabeled entry in place, fetching titles concurrently."""
        entries_needing_titles = [
            entry for entry in entries
            if not entry.label or entry.label == entry.url
        ]
        if not entries_needing_titles:
            return entries

        timeout = aiohttp.ClientTimeout(total=self.timeout)
        with tqdm(total=len(entries_needing_titles), desc="Fetching titles", unit="link") as pbar:
            async with aiohttp.ClientSession(timeout=timeout, headers={'User-Agent': USER_AGENT}) as session:

                async def process_entry(entry: LinkEntry):
                    title = await self.fetch_title(entry.url, session)
                    entry.label = title or fallback_label(entry)
                    pbar.update(1)
                    return title is not None

                # Process in batches to avoid overwhelming the remote hosts
                batch_size = self.concurrent_requests
                fetched = 0
                for i in range(0, len(entries_needing_titles), batch_size):
                    batch = entries_needing_titles[i:i + batch_size]
                    results = await asyncio.gather(*[process_entry(entry) for entry in batch])
                    fetched += sum(results)

        if self.cache:
            self.cache.save_cache()

        logger.info(f"Labelled {len(entries_needing_titles)} links ({fetched} from page titles)")
        return entries
