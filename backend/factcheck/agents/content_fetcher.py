"""
content_fetcher.py

Fetches a post as markdown through a reader service (r.jina.ai) and pulls
out the images it references. Used by the background processor before the
post is handed to the analysis engine.
"""
import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional
from urllib.parse import urlsplit

import requests

from ..errors import FetchError

logger = logging.getLogger(__name__)

# ![alt](http(s)://...) ; the URL stops at whitespace or the closing paren
IMAGE_PATTERN = re.compile(r"!\[[^\]]*\]\((https?://[^\s)]+)\)")

# Formats the vision model cannot read
UNSUPPORTED_IMAGE_EXTENSIONS = (".svg",)


@dataclass
class FetchedContent:
    """Readable rendering of a post."""
    url: str
    text: str
    image_urls: List[str] = field(default_factory=list)


def extract_image_urls(markdown: str) -> List[str]:
    """
    Image URLs referenced with markdown image syntax.

    Order of appearance is kept and repeats are not removed. Vector images
    are dropped.
    """
    urls = []
    for match in IMAGE_PATTERN.finditer(markdown or ""):
        url = match.group(1)
        path = urlsplit(url).path.lower()
        if path.endswith(UNSUPPORTED_IMAGE_EXTENSIONS):
            continue
        urls.append(url)
    return urls


class ContentFetcher:
    """
    Client for the markdown reader service.
    """

    def __init__(
        self,
        reader_base_url: str = "https://r.jina.ai",
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        self.reader_base_url = reader_base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.headers = {"Accept": "text/markdown"}

    def reader_url(self, url: str) -> str:
        return f"{self.reader_base_url}/{url}"

    def fetch(self, url: str) -> FetchedContent:
        """
        Fetch the post at url.

        Raises:
            FetchError: the reader answered with a non-2xx status or could
                not be reached
        """
        logger.info(f"Fetching content: {url}")
        try:
            response = self.session.get(self.reader_url(url), headers=self.headers, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"Reader unreachable for {url}: {e}")
            raise FetchError(f"Failed to fetch content: {e}") from e

        if not response.ok:
            logger.error(f"Reader returned {response.status_code} for {url}")
            reason = response.reason or "error"
            raise FetchError(
                f"Failed to fetch content: {response.status_code} {reason}",
                status=response.status_code,
            )

        response.encoding = "utf-8"
        text = response.text
        image_urls = extract_image_urls(text)
        logger.info(f"Fetched {len(text)} chars and {len(image_urls)} images from {url}")

        return FetchedContent(url=url, text=text, image_urls=image_urls)
