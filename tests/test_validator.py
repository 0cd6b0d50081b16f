"""Tests for link page validation."""

from linkpage.models.link_page import Category, FrontMatter, LinkEntry, LinkPage
from linkpage.services.parser import PageParser
from linkpage.services.validator import ERROR, WARNING, Issue, PageValidator, ValidationReport


GOOD_FRONT_MATTER = "---\ntitle: T\nlayout: useful-links\nurl: /useful-links/\nsummary: S\n---\n"


def validate(text, **settings):
    return PageValidator(settings).validate(PageParser().parse_text(text))


def test_sample_page_has_only_warnings(sample_text):
    report = validate(sample_text)

    assert report.ok
    assert report.errors == []
    assert sorted(report.codes()) == ["duplicate-front-matter", "duplicate-url", "duplicate-url"]
    assert report.passed() is True
    assert report.passed(strict=True) is False


def test_clean_page_passes_strict():
    report = validate(GOOD_FRONT_MATTER + "## Docs\n- https://docs.python.org/3/\n")

    assert report.issues == []
    assert report.passed(strict=True)


def test_missing_front_matter():
    report = validate("## Docs\n- https://docs.python.org/3/\n")

    assert report.codes() == ["missing-front-matter"]
    assert not report.ok


def test_missing_and_invalid_fields():
    report = validate("---\ntitle: ''\nlayout: 3\nurl: useful-links\n---\n## A\n- https://a.example\n")
    codes = report.codes()

    assert codes.count("missing-field") == 2  # title is blank, summary absent
    assert "invalid-field" in codes
    assert "invalid-route" in codes


def test_route_without_trailing_slash_is_a_warning():
    text = GOOD_FRONT_MATTER.replace("url: /useful-links/", "url: /useful-links") + "## A\n- https://a.example\n"
    report = validate(text)

    assert report.codes() == ["route-trailing-slash"]
    assert report.issues[0].severity == WARNING


def test_required_fields_are_configurable():
    report = validate("---\ntitle: T\nurl: /t/\n---\n## A\n- https://a.example\n", required_fields=["title"])

    assert report.ok


def test_empty_and_repeated_categories():
    report = validate(GOOD_FRONT_MATTER + "## Docs\n## Tools\n- https://a.example\n## docs\n- https://b.example\n")

    empty = [issue for issue in report.issues if issue.code == "empty-category"]
    assert len(empty) == 1
    assert empty[0].severity == ERROR
    assert empty[0].line == 7
    assert report.codes().count("duplicate-category") == 1


def test_malformed_urls_are_errors():
    page = LinkPage(
        front_matter=FrontMatter(title="T", layout="l", url="/t/", summary="s"),
        categories=[Category(name="Bad")],
    )
    for url in ("ftp://files.example/x", "https://", "notaurl", "https://exa mple.com", "http://[::1"):
        page.categories[0].add(LinkEntry(url=url))

    report = PageValidator().validate(page)

    assert report.codes() == ["invalid-url"] * 5


def test_allowed_schemes_setting():
    validator = PageValidator({"allowed_schemes": ["http", "https", "mailto"]})

    assert validator.url_problem("mailto:someone@example.com") is None
    assert validator.url_problem("https://example.com") is None
    assert "scheme" in validator.url_problem("ftp://example.com")


def test_duplicate_scope_setting():
    text = GOOD_FRONT_MATTER + "## A\n- https://x.example\n## B\n- https://x.example\n"

    assert validate(text).codes() == ["duplicate-url"]
    assert validate(text, dedupe_scope="category").issues == []


def test_issue_str_includes_line_and_code():
    assert str(Issue(ERROR, "empty-category", "category 'X' has no links", 4)) == \
        "line 4: [empty-category] category 'X' has no links"
    assert ValidationReport().ok
