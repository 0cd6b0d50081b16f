from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

FRONT_MATTER_FIELDS = ('title', 'layout', 'url', 'summary')


@dataclass
class LinkEntry:
    url: str
    label: Optional[str] = None
    category: Optional[str] = None
    line: Optional[int] = None
    format: str = 'raw_url'
    domain: Optional[str] = None

    def __post_init__(self):
        try:
            self.domain = urlparse(self.url).netloc if self.url else None
        except ValueError:
            self.domain = None

    @property
    def display(self) -> str:
        return self.label or self.url


@dataclass
class Category:
    name: str
    links: List[LinkEntry] = field(default_factory=list)
    line: Optional[int] = None

    def add(self, entry: LinkEntry) -> LinkEntry:
        entry.category = self.name
        self.links.append(entry)
        return entry


@dataclass
class FrontMatter:
    title: Any = None
    layout: Any = None
    url: Any = None
    summary: Any = None
    extra: Dict[str, Any] = field(default_factory=dict)
    line: int = 1

    @classmethod
    def from_mapping(cls, data: Dict[str, Any], line: int = 1) -> 'FrontMatter':
        known = {key: data.get(key) for key in FRONT_MATTER_FIELDS}
        extra = {key: value for key, value in data.items() if key not in FRONT_MATTER_FIELDS}
        return cls(**known, extra=extra, line=line)

    def to_dict(self) -> Dict[str, Any]:
        """Known fields in their conventional order, then any extras."""
        data = {key: getattr(self, key) for key in FRONT_MATTER_FIELDS if getattr(self, key) is not None}
        data.update(self.extra)
        return data


@dataclass
class LinkPage:
    front_matter: Optional[FrontMatter] = None
    categories: List[Category] = field(default_factory=list)
    source: Optional[str] = None
    duplicate_front_matter: List[int] = field(default_factory=list)

    @property
    def links(self) -> List[LinkEntry]:
        return [entry for category in self.categories for entry in category.links]

    @property
    def category_names(self) -> List[str]:
        return [category.name for category in self.categories]
