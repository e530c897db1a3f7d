"""Job posting import: fetch a posting page and reduce it to plain text."""

from __future__ import annotations

import logging

import requests
from bs4 import BeautifulSoup

from careercoach.errors import ParseError

logger = logging.getLogger(__name__)


USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)

FETCH_FAILED_MESSAGE = "Could not read the job posting. Please paste the description instead."

_NOISE_TAGS = ["script", "style", "noscript", "nav", "header", "footer", "form", "svg"]


def fetch_job_text(url: str, timeout_sec: int = 30) -> str:
    """Download ``url`` and return the posting text.

    Raises ``ParseError`` when the page cannot be fetched. A page that loads
    but holds no text yields an empty string.
    """
    try:
        response = requests.get(url, timeout=timeout_sec, headers={"User-Agent": USER_AGENT})
        response.raise_for_status()
    except requests.RequestException as exc:
        logger.warning("Failed to fetch job URL %s: %s", url, exc)
        raise ParseError(f"could not fetch {url}: {exc}", user_message=FETCH_FAILED_MESSAGE) from exc

    text = html_to_job_text(response.text)
    logger.info("Fetched job posting url=%s chars=%d", url, len(text))
    return text


def html_to_job_text(html: str) -> str:
    soup = BeautifulSoup(html, "html.parser")
    title = soup.title.get_text(strip=True) if soup.title else ""

    for tag in soup(_NOISE_TAGS):
        tag.decompose()

    # Postings usually live in <main> or <article>; fall back to the whole body.
    root = soup.find("main") or soup.find("article") or soup.body or soup
    lines = [line.strip() for line in root.get_text("\n").splitlines() if line.strip()]
    if title and lines and lines[0] != title:
        lines.insert(0, title)
    return "\n".join(lines)
