import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, List, Optional
from urllib.parse import urlparse

from ..models.link_page import FRONT_MATTER_FIELDS, LinkPage
from .deduplicator import find_duplicates

logger = logging.getLogger(__name__)

ERROR = 'error'
WARNING = 'warning'


@dataclass
class Issue:
    severity: str
    code: str
    message: str
    line: Optional[int] = None

    def __str__(self) -> str:
        where = f"line {self.line}: " if self.line else ""
        return f"{where}[{self.code}] {self.message}"


@dataclass
class ValidationReport:
    issues: List[Issue] = field(default_factory=list)

    @property
    def errors(self) -> List[Issue]:
        return [issue for issue in self.issues if issue.severity == ERROR]

    @property
    def warnings(self) -> List[Issue]:
        return [issue for issue in self.issues if issue.severity == WARNING]

    @property
    def ok(self) -> bool:
        return not self.errors

    def passed(self, strict: bool = False) -> bool:
        return self.ok and not (strict and self.warnings)

    def codes(self) -> List[str]:
        return [issue.code for issue in self.issues]


class PageValidator:
    """Checks the informational properties of a links page.

    Nothing here touches the network: a URL is "valid" when it is well formed,
    not when it answers.
    """

    def __init__(self, settings: Optional[dict] = None):
        settings = settings or {}
        self.allowed_schemes = [s.lower() for s in settings.get('allowed_schemes', ['http', 'https'])]
        self.required_fields = list(settings.get('required_fields', FRONT_MATTER_FIELDS))
        self.dedupe_scope = settings.get('dedupe_scope', 'global')

    def validate(self, page: LinkPage) -> ValidationReport:
        report = ValidationReport()
        report.issues.extend(self.check_front_matter(page))
        report.issues.extend(self.check_categories(page))
        report.issues.extend(self.check_urls(page))
        report.issues.extend(self.check_duplicates(page))

        for issue in report.issues:
            log = logger.error if issue.severity == ERROR else logger.warning
            log(str(issue))
        logger.info(f"Validation complete: {len(report.errors)} errors, {len(report.warnings)} warnings")
        return report

    def check_front_matter(self, page: LinkPage) -> Iterable[Issue]:
        front_matter = page.front_matter
        if front_matter is None:
            yield Issue(ERROR, 'missing-front-matter', "page has no front matter block", 1)
        else:
            for name in self.required_fields:
                value = getattr(front_matter, name, None)
                if value is None and name in front_matter.extra:
                    value = front_matter.extra[name]
                if value is None or (isinstance(value, str) and not value.strip()):
                    yield Issue(ERROR, 'missing-field', f"front matter field '{name}' is missing or blank",
                                front_matter.line)

            for name in FRONT_MATTER_FIELDS:
                value = getattr(front_matter, name)
                if value is not None and not isinstance(value, str):
                    yield Issue(ERROR, 'invalid-field',
                                f"front matter field '{name}' must be a string, got {type(value).__name__}",
                                front_matter.line)

            route = front_matter.url
            if isinstance(route, str) and route.strip():
                if not route.startswith('/'):
                    yield Issue(ERROR, 'invalid-route', f"route '{route}' must start with '/'", front_matter.line)
                elif not route.endswith('/'):
                    yield Issue(WARNING, 'route-trailing-slash', f"route '{route}' does not end with '/'",
                                front_matter.line)

        for line in page.duplicate_front_matter:
            yield Issue(WARNING, 'duplicate-front-matter', "front matter is repeated in the page body", line)

    def check_categories(self, page: LinkPage) -> Iterable[Issue]:
        for category in page.categories:
            if not category.links:
                yield Issue(ERROR, 'empty-category', f"category '{category.name}' has no links", category.line)

        counts = Counter(name.lower() for name in page.category_names)
        reported = set()
        for category in page.categories:
            key = category.name.lower()
            if counts[key] > 1 and key not in reported:
                reported.add(key)
                yield Issue(WARNING, 'duplicate-category',
                            f"category '{category.name}' appears {counts[key]} times", category.line)

    def check_urls(self, page: LinkPage) -> Iterable[Issue]:
        for entry in page.links:
            reason = self.url_problem(entry.url)
            if reason:
                yield Issue(ERROR, 'invalid-url', f"{entry.url!r} in '{entry.category}': {reason}", entry.line)

    def check_duplicates(self, page: LinkPage) -> Iterable[Issue]:
        for url, entries in find_duplicates(page, self.dedupe_scope).items():
            first = entries[0]
            others = ', '.join(str(entry.line) for entry in entries[1:])
            yield Issue(WARNING, 'duplicate-url',
                        f"{first.url} appears {len(entries)} times (first at line {first.line}, again at {others})",
                        entries[1].line)

    def url_problem(self, url: str) -> Optional[str]:
        """Describe why ``url`` is malformed, or return None when it is fine."""
        if not url or any(ch.isspace() for ch in url):
            return "empty or contains whitespace"
        try:
            result = urlparse(url)
            host = result.hostname
        except ValueError as e:
            return str(e)
        if result.scheme.lower() not in self.allowed_schemes:
            return f"scheme '{result.scheme}' is not one of {', '.join(self.allowed_schemes)}"
        if result.scheme.lower() in ('http', 'https') and not host:
            return "no host"
        if result.scheme.lower() not in ('http', 'https') and not (result.netloc or result.path):
            return "nothing after the scheme"
        return None
