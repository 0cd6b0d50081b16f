import logging
from collections import defaultdict
from copy import deepcopy
from typing import Dict, List, Tuple
from urllib.parse import urlparse

from ..models.link_page import LinkEntry, LinkPage

logger = logging.getLogger(__name__)

SCOPES = ('global', 'category')


def normalize_url(url: str) -> str:
    """Normalize a URL for duplicate detection, keeping params and query but ignoring fragments."""
    try:
        parsed = urlparse(url.strip())
    except ValueError:
        return url.strip().lower().rstrip('/')
    if not parsed.scheme or not parsed.netloc:
        return url.strip().lower().rstrip('/')
    normalized_url = (
        f"{parsed.scheme}://{parsed.netloc}{parsed.path}"
        f"{parsed.params and ';' + parsed.params or ''}"
        f"{parsed.query and '?' + parsed.query or ''}"
    ).lower().rstrip('/')
    return normalized_url


def _duplicate_key(entry: LinkEntry, category_index: int, scope: str) -> Tuple:
    if scope == 'category':
        return category_index, normalize_url(entry.url)
    return (normalize_url(entry.url),)


def find_duplicates(page: LinkPage, scope: str = 'global') -> Dict[str, List[LinkEntry]]:
    """Map each repeated normalized URL to its occurrences, in document order.

    With ``scope='category'`` only repeats inside the same category count, and
    a URL repeated in several categories is listed once per category as
    ``"<category>: <url>"``.
    """
    if scope not in SCOPES:
        raise ValueError(f"Unknown dedupe scope: {scope!r}")

    url_locations = defaultdict(list)
    for index, category in enumerate(page.categories):
        for entry in category.links:
            url_locations[_duplicate_key(entry, index, scope)].append(entry)

    duplicates = {}
    for key, entries in url_locations.items():
        if len(entries) < 2:
            continue
        if scope == 'category':
            duplicates[f"{page.categories[key[0]].name}: {key[1]}"] = entries
        else:
            duplicates[key[0]] = entries
    return duplicates


def remove_duplicates(page: LinkPage, scope: str = 'global') -> LinkPage:
    """Return a copy of ``page`` keeping only the first occurrence of each URL.

    Categories emptied by the removal are dropped.
    """
    if scope not in SCOPES:
        raise ValueError(f"Unknown dedupe scope: {scope!r}")

    result = deepcopy(page)
    kept: Dict[Tuple, LinkEntry] = {}
    removed = 0

    for index, category in enumerate(result.categories):
        unique_links = []
        for entry in category.links:
            key = _duplicate_key(entry, index, scope)
            first = kept.get(key)
            if first is None:
                kept[key] = entry
                unique_links.append(entry)
                continue
            if not first.label and entry.label:
                first.label = entry.label
            removed += 1
            logger.debug(f"Dropping duplicate of {first.url} at line {entry.line} (kept line {first.line})")
        category.links = unique_links

    emptied = [category.name for category in result.categories if not category.links]
    result.categories = [category for category in result.categories if category.links]
    if emptied:
        logger.info(f"Dropped {len(emptied)} empty categories: {', '.join(emptied)}")
    logger.info(f"Removed {removed} duplicate links")
    return result
