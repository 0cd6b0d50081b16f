import json
import logging
import time
from pathlib import Path
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class CacheManager:
    """JSON file cache of fetched page titles, keyed by URL."""

    def __init__(self, cache_file: Path, cache_duration: int = 86400):
        self.cache_file = Path(cache_file)
        self.cache_duration = cache_duration
        self.cache = self.load_cache()

    def load_cache(self) -> Dict:
        """Load URL cache from file."""
        if self.cache_file.exists():
            try:
                with open(self.cache_file, 'r', encoding='utf-8') as f:
                    cache_data = json.load(f)
                # Clean expired entries
                current_time = time.time()
                return {
                    k: v for k, v in cache_data.items()
                    if isinstance(v, dict) and current_time - v.get('timestamp', 0) < self.cache_duration
                }
            except (OSError, ValueError, TypeError, AttributeError) as e:
                logger.warning(f"Failed to load cache: {e}")
        return {}

    def save_cache(self):
        """Save URL cache to file."""
        try:
            with open(self.cache_file, 'w', encoding='utf-8') as f:
                json.dump(self.cache, f, indent=2)
        except OSError as e:
            logger.warning(f"Failed to save cache: {e}")

    def get_cached_title(self, url: str) -> Optional[str]:
        cached_data = self.cache.get(url)
        if cached_data and time.time() - cached_data.get('timestamp', 0) < self.cache_duration:
            return cached_data.get('title')
        return None

    def update_cache(self, url: str, title: str) -> str:
        title = title.strip()
        self.cache[url] = {
            'title': title,
            'timestamp': time.time()
        }
        return title
