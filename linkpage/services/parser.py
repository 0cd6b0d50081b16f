import logging
import re
from pathlib import Path
from typing import List, Optional, Tuple

import yaml

from ..errors import FrontMatterError
from ..models.link_page import FRONT_MATTER_FIELDS, Category, FrontMatter, LinkEntry, LinkPage

logger = logging.getLogger(__name__)

UNCATEGORIZED = "Uncategorized"

HEADING_RE = re.compile(r'^(#{1,6})\s+(.*?)(?:\s+#+)?\s*$')
BULLET_RE = re.compile(r'^(?:[-*+]|\d+[.)])\s+')
MARKDOWN_LINK_RE = re.compile(
    r'(?<!!)\[((?:\\.|[^\]\\])*)\]'
    r'\(\s*<?((?:[^()\s<>]|\([^()\s]*\))+)>?(?:\s+"[^"]*")?\s*\)'
)
LABEL_ESCAPE_RE = re.compile(r'\\([\[\]\\])')
BARE_FIELD_RE = re.compile(r'^(%s):\s*(.*)$' % '|'.join(FRONT_MATTER_FIELDS))

# Tried in order; the first match wins.
LINE_PATTERNS = [
    (re.compile(r'^<([a-zA-Z][\w+.-]*:[^>\s]+)>$'), 'angle'),
    (re.compile(r'^(.+?):\s*(https?://\S+)$'), 'with_description'),
    (re.compile(r'^(.+?)\s+[-–—]\s+(https?://\S+)$'), 'with_description'),
    (re.compile(r'^(https?://\S+)$'), 'raw_url'),
]


class PageParser:
    """Reads a markdown links page into a :class:`LinkPage`."""

    def parse_file(self, file_path: str) -> LinkPage:
        path = Path(file_path)
        logger.debug(f"Reading {path}")
        text = path.read_text(encoding='utf-8', errors='replace')
        page = self.parse_text(text)
        page.source = str(path)
        return page

    def parse_text(self, text: str) -> LinkPage:
        lines = text.splitlines()
        page = LinkPage()

        start = 0
        if lines and lines[0].strip() == '---':
            page.front_matter, start = self._read_front_matter(lines)

        current: Optional[Category] = None
        in_fence = False
        i = start
        while i < len(lines):
            raw = lines[i]
            line = raw.strip()
            line_no = i + 1

            if line.startswith('```'):
                in_fence = not in_fence
                i += 1
                continue
            if in_fence or not line:
                i += 1
                continue

            if line == '---':
                end = self._duplicate_block_end(lines, i)
                if end is not None:
                    logger.debug(f"Skipping repeated front matter block at line {line_no}")
                    page.duplicate_front_matter.append(line_no)
                    i = end + 1
                    continue
                # A plain horizontal rule
                i += 1
                continue

            run = self._bare_field_run(lines, i)
            if run >= 2:
                logger.debug(f"Skipping repeated front matter fields at line {line_no}")
                page.duplicate_front_matter.append(line_no)
                i += run
                continue

            heading = HEADING_RE.match(line)
            if heading:
                current = self._open_category(page, heading.group(2), line_no)
                i += 1
                continue

            if line.endswith(':') and 'http' not in line and not BULLET_RE.match(line):
                current = self._open_category(page, line, line_no)
                i += 1
                continue

            entries = self.parse_link_line(line, line_no)
            if entries:
                if current is None:
                    current = self._open_category(page, UNCATEGORIZED, line_no)
                for entry in entries:
                    current.add(entry)
            else:
                logger.debug(f"Ignoring text on line {line_no}: {line[:60]}")
            i += 1

        logger.debug(f"Parsed {len(page.links)} links in {len(page.categories)} categories")
        return page

    @staticmethod
    def parse_link_line(line: str, line_no: Optional[int] = None) -> List[LinkEntry]:
        """Extract the link entries written on a single line."""
        line = BULLET_RE.sub('', line.strip(), count=1)

        markdown_links = MARKDOWN_LINK_RE.findall(line)
        if markdown_links:
            return [
                LinkEntry(url=url.strip(), label=_clean_label(label), line=line_no, format='markdown')
                for label, url in markdown_links
            ]

        for pattern, format_type in LINE_PATTERNS:
            match = pattern.match(line)
            if not match:
                continue
            if format_type == 'with_description':
                label, url = match.groups()
                return [LinkEntry(url=url.strip(), label=_clean_label(label), line=line_no, format=format_type)]
            return [LinkEntry(url=match.group(1).strip(), line=line_no, format=format_type)]

        return []

    @staticmethod
    def _open_category(page: LinkPage, heading: str, line_no: int) -> Category:
        name = heading.strip().rstrip(':').strip().strip('*_').strip()
        category = Category(name=name or UNCATEGORIZED, line=line_no)
        page.categories.append(category)
        return category

    @staticmethod
    def _read_front_matter(lines: List[str]) -> Tuple[FrontMatter, int]:
        for end in range(1, len(lines)):
            if lines[end].strip() in ('---', '...'):
                break
        else:
            raise FrontMatterError("front matter block is not terminated")

        try:
            data = yaml.safe_load('\n'.join(lines[1:end]))
        except yaml.YAMLError as e:
            raise FrontMatterError(f"invalid YAML in front matter: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise FrontMatterError("front matter must be a mapping")
        return FrontMatter.from_mapping(data, line=1), end + 1

    @staticmethod
    def _duplicate_block_end(lines: List[str], start: int) -> Optional[int]:
        """Index of the closing delimiter if lines[start] opens a repeated front matter block."""
        for end in range(start + 1, len(lines)):
            if lines[end].strip() == '---':
                break
        else:
            return None

        try:
            data = yaml.safe_load('\n'.join(lines[start + 1:end]))
        except yaml.YAMLError:
            return None
        if isinstance(data, dict) and set(data) & set(FRONT_MATTER_FIELDS):
            return end
        return None

    @staticmethod
    def _bare_field_run(lines: List[str], start: int) -> int:
        run = 0
        while start + run < len(lines) and BARE_FIELD_RE.match(lines[start + run].strip()):
            run += 1
        return run


def _clean_label(label: str) -> Optional[str]:
    label = LABEL_ESCAPE_RE.sub(r'\1', label.strip().strip('*_`').strip())
    return label or None
