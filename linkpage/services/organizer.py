import logging
from pathlib import Path
from typing import Dict, List, Optional

import yaml

from ..models.link_page import FRONT_MATTER_FIELDS, LinkEntry, LinkPage
from ..utils.cache_manager import CacheManager
from ..utils.title_fetcher import TitleFetcher
from ..writers.markdown_writer import MarkdownWriter
from .deduplicator import SCOPES, find_duplicates, remove_duplicates
from .parser import PageParser
from .validator import PageValidator, ValidationReport

logger = logging.getLogger(__name__)


class LinkPageOrganizer:
    def __init__(self, config_path: Optional[str] = None, use_cache: bool = True):
        """Initialize the LinkPageOrganizer with configuration."""
        self.config = self.load_config(config_path)
        self.settings = self.config['settings']
        self.parser = PageParser()
        self.validator = PageValidator(self.settings)
        self.writer = MarkdownWriter()
        self.use_cache = use_cache

    @staticmethod
    def default_settings() -> dict:
        return {
            'timeout': 5,
            'concurrent_requests': 10,
            'cache_duration': 86400,  # 24 hours
            'cache_file': 'url_cache.json',
            'fetch_titles': False,
            'allowed_schemes': ['http', 'https'],
            'dedupe_scope': 'global',
            'required_fields': list(FRONT_MATTER_FIELDS),
        }

    @staticmethod
    def load_config(config_path: Optional[str]) -> dict:
        """Load configuration from YAML file or use defaults."""
        default_config = {'settings': LinkPageOrganizer.default_settings()}

        if config_path:
            try:
                config_path = Path(config_path)
                if config_path.exists():
                    with open(config_path, 'r', encoding='utf-8') as f:
                        loaded_config = yaml.safe_load(f)
                    if not loaded_config:
                        logger.warning("Empty configuration file, using defaults")
                        return default_config
                    if not isinstance(loaded_config, dict):
                        logger.warning(f"Configuration in {config_path} is not a mapping, using defaults")
                        return default_config

                    loaded_settings = loaded_config.get('settings') or {}
                    if not isinstance(loaded_settings, dict):
                        logger.warning(f"'settings' in {config_path} is not a mapping, using defaults")
                        return default_config

                    # Merge with defaults to ensure all required settings exist
                    merged_config = {
                        'settings': {**default_config['settings'], **loaded_settings},
                    }
                    scope = merged_config['settings']['dedupe_scope']
                    if scope not in SCOPES:
                        logger.warning(f"Unknown dedupe_scope {scope!r} in {config_path}, "
                                       f"using {default_config['settings']['dedupe_scope']!r}")
                        merged_config['settings']['dedupe_scope'] = default_config['settings']['dedupe_scope']
                    logger.info(f"Loaded configuration from {config_path}")
                    return merged_config
                else:
                    logger.warning(f"Config file not found: {config_path}")
                    return default_config
            except (OSError, yaml.YAMLError) as e:
                logger.warning(f"Failed to load config file: {e}")
                return default_config

        logger.info("Using default configuration")
        return default_config

    def parse_page(self, file_path: str) -> LinkPage:
        logger.info(f"Parsing links from {file_path}...")
        page = self.parser.parse_file(file_path)
        logger.info(f"Found {len(page.links)} links in {len(page.categories)} categories")
        return page

    def validate(self, page: LinkPage) -> ValidationReport:
        return self.validator.validate(page)

    def find_duplicates(self, page: LinkPage) -> Dict[str, List[LinkEntry]]:
        return find_duplicates(page, self.settings['dedupe_scope'])

    def deduplicate(self, page: LinkPage) -> LinkPage:
        return remove_duplicates(page, self.settings['dedupe_scope'])

    def create_title_fetcher(self) -> TitleFetcher:
        cache = None
        if self.use_cache:
            cache = CacheManager(Path(self.settings['cache_file']), self.settings['cache_duration'])
        return TitleFetcher(
            timeout=self.settings['timeout'],
            concurrent_requests=self.settings['concurrent_requests'],
            cache=cache,
        )

    async def fetch_missing_titles(self, page: LinkPage) -> LinkPage:
        """Fill in labels for well-formed links that have none."""
        entries = [entry for entry in page.links if self.validator.url_problem(entry.url) is None]
        await self.create_title_fetcher().fetch_missing_titles(entries)
        return page

    def write_page(self, page: LinkPage, output_file: str):
        logger.info(f"Writing page to {output_file}...")
        self.writer.write_page(page, output_file)

    def write_report(self, page: LinkPage, report: ValidationReport, output_file: str):
        logger.info(f"Writing report to {output_file}...")
        self.writer.write_report(page, report, self.find_duplicates(page), output_file)
