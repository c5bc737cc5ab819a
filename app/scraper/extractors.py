from typing import Any

from bs4 import BeautifulSoup

MAX_PAGE_TEXT_CHARS = 12000


def extract_targeted(html: str, selectors: list[str]) -> dict[str, Any]:
    """Text of every element matched by each CSS selector, plus page metadata."""
    soup = BeautifulSoup(html, "html.parser")
    matched: dict[str, list[str]] = {}
    for selector in selectors:
        texts = [element.get_text(" ", strip=True) for element in soup.select(selector)]
        matched[selector] = [text for text in texts if text]
    return {
        "title": _title(soup),
        "selectors": matched,
        "metadata": {
            "description": _meta(soup, "description"),
            "author": _meta(soup, "author"),
        },
    }


def page_text(html: str, limit: int = MAX_PAGE_TEXT_CHARS) -> str:
    """Visible text of the page, scripts and styles removed, truncated."""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()
    text = " ".join(soup.get_text(" ", strip=True).split())
    return text[:limit]


def _title(soup: BeautifulSoup) -> str | None:
    if soup.title and soup.title.string:
        return soup.title.string.strip()
    heading = soup.find("h1")
    return heading.get_text(strip=True) if heading else None


def _meta(soup: BeautifulSoup, name: str) -> str | None:
    tag = soup.find("meta", attrs={"name": name})
    if tag is None:
        return None
    content = tag.get("content")
    return content.strip() if isinstance(content, str) else None
