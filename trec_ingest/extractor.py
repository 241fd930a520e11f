"""Visible-text extraction from HTML payloads (BeautifulSoup, html.parser)."""

import logging
import re
from typing import Union

from bs4 import BeautifulSoup
from bs4.builder import ParserRejectedMarkup

logger = logging.getLogger("trec_ingest")

_WHITESPACE = re.compile(r"\s+")
_HTTP_HEADER_END = re.compile(rb"\r?\n\r?\n")

INVISIBLE_TAGS = ["script", "style", "noscript", "template"]


class HtmlParseError(ValueError):
    pass


def strip_http_headers(payload: bytes) -> bytes:
    """Drop the HTTP status line and headers in front of a WARC response body."""
    if not payload.startswith(b"HTTP/"):
        return payload
    m = _HTTP_HEADER_END.search(payload)
    return payload[m.end():] if m else b""


class HtmlTextExtractor:
    def __init__(self, parser: str = "html.parser"):
        self.parser = parser

    def extract(self, html: Union[bytes, str]) -> str:
        """Return the visible text of html with whitespace collapsed.

        Raises HtmlParseError when the parser rejects the markup.
        """
        try:
            soup = BeautifulSoup(html, self.parser)
        except (ParserRejectedMarkup, AssertionError) as e:
            raise HtmlParseError(str(e)) from e

        for tag in soup(INVISIBLE_TAGS):
            tag.decompose()

        text = soup.get_text(separator=" ")
        return _WHITESPACE.sub(" ", text).strip()
