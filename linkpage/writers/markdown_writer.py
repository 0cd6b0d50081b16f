from typing import Dict, List, Optional
from datetime import datetime, UTC

import yaml

from ..models.link_page import LinkEntry, LinkPage
from ..services.validator import ERROR, WARNING, ValidationReport


class MarkdownWriter:
    @staticmethod
    def format_entry(entry: LinkEntry) -> str:
        if entry.label and entry.label != entry.url:
            label = entry.label.replace('\\', '\\\\').replace('[', '\\[').replace(']', '\\]')
            return f"- [{label}]({entry.url})"
        return f"- <{entry.url}>"

    def render_page(self, page: LinkPage) -> str:
        """Render a page back to markdown: front matter first, then one section per category."""
        parts = []
        if page.front_matter is not None:
            front_matter = yaml.safe_dump(
                page.front_matter.to_dict(),
                sort_keys=False,
                allow_unicode=True,
                default_flow_style=False,
            )
            parts.append(f"---\n{front_matter}---\n")

        for category in page.categories:
            lines = [f"## {category.name}", ""]
            lines.extend(self.format_entry(entry) for entry in category.links)
            parts.append("\n".join(lines) + "\n")

        return "\n".join(parts)

    def write_page(self, page: LinkPage, output_file: str):
        with open(output_file, 'w', encoding='utf-8') as f:
            f.write(self.render_page(page))

    def render_report(self, page: LinkPage, report: ValidationReport,
                      duplicates: Optional[Dict[str, List[LinkEntry]]] = None) -> str:
        lines = []
        title = page.front_matter.title if page.front_matter and page.front_matter.title else page.source
        lines.append(f"# Link Page Report: {title or 'untitled'}")
        lines.append("")
        lines.append(f"*Generated on {datetime.now(UTC).strftime('%Y-%m-%d %H:%M:%S')} UTC*")
        lines.append(f"*Total Links: {len(page.links)} in {len(page.categories)} categories*")
        lines.append(f"*Errors: {len(report.errors)}, Warnings: {len(report.warnings)}*")
        lines.append("")

        lines.append("## Categories")
        lines.append("")
        for category in page.categories:
            lines.append(f"- {category.name} ({len(category.links)} links)")
        lines.append("")

        for severity, heading in ((ERROR, "Errors"), (WARNING, "Warnings")):
            issues = [issue for issue in report.issues if issue.severity == severity]
            if not issues:
                continue
            lines.append(f"## {heading}")
            lines.append("")
            for issue in issues:
                lines.append(f"- {issue}")
            lines.append("")

        if duplicates:
            lines.append("## Duplicate URLs")
            lines.append("")
            for url, occurrences in duplicates.items():
                kept = occurrences[0]
                lines.append(f"### {url}")
                lines.append("")
                lines.append(f"- Kept line {kept.line} ({kept.category}): {kept.display}")
                for entry in occurrences[1:]:
                    lines.append(f"- Repeated line {entry.line} ({entry.category}): {entry.display}")
                lines.append("")

        return "\n".join(lines)

    def write_report(self, page: LinkPage, report: ValidationReport,
                     duplicates: Optional[Dict[str, List[LinkEntry]]], output_file: str):
        """Write the validation report as markdown."""
        with open(output_file, 'w', encoding='utf-8') as f:
            f.write(self.render_report(page, report, duplicates))
