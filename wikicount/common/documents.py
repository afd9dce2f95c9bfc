"""
Page source for MediaWiki style XML dumps.

Walks the dump with an event-driven parser and hands out one Document per
<page> element. Only a single consumer may pull from a source at a time.
"""

import os
import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional

from wikicount.common.errors import SourceError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Document:
    """A single page from the dump"""
    title: str
    text: str


def _local_name(tag: str) -> str:
    """Strip the '{namespace}' prefix the parser puts on qualified tags"""
    return tag.rsplit('}', 1)[-1]


class PageSource:
    """Lazily reads pages from an XML dump, up to max_documents of them"""

    def __init__(self, path: str, max_documents: int = 100000):
        """
        Initialize the page source

        Args:
            path: Path to the XML dump
            max_documents: Upper bound on the number of pages handed out
        """
        self.path = path
        self.max_documents = max_documents
        self.remaining = max_documents
        self.pages_read = 0
        self._file = None
        self._events = None
        self._root = None
        self._exhausted = max_documents <= 0

    def _open(self):
        if not os.path.exists(self.path):
            raise SourceError(f"Page dump not found: {self.path}")
        try:
            self._file = open(self.path, 'rb')
        except OSError as e:
            raise SourceError(f"Cannot open page dump {self.path}: {e}") from e
        self._events = ET.iterparse(self._file, events=('start', 'end'))
        logger.info(f"Reading up to {self.max_documents} pages from {self.path}")

    def next_document(self) -> Optional[Document]:
        """
        Pull the next page from the dump

        Returns:
            The next Document, or None once the dump is exhausted, the page
            bound is reached or the input turns out to be malformed

        Raises:
            SourceError: If the dump cannot be opened
        """
        if self._exhausted:
            return None
        if self._events is None:
            self._open()

        try:
            document = self._read_page()
        except (ET.ParseError, OSError) as e:
            # Truncated or malformed input ends the stream; what was read so far stands
            logger.warning(f"No more pages! Stopped after {self.pages_read} pages: {e}")
            document = None

        if document is None:
            self.close()
            return None

        self.pages_read += 1
        self.remaining -= 1
        if self.remaining <= 0:
            self.close()
        return document

    def _read_page(self) -> Optional[Document]:
        title = ''
        text = ''
        in_page = False

        for event, elem in self._events:
            if self._root is None:
                self._root = elem
            name = _local_name(elem.tag)

            if event == 'start':
                if name == 'page':
                    in_page = True
                    title = ''
                    text = ''
                continue

            if not in_page:
                continue
            if name == 'title':
                title = elem.text or ''
            elif name == 'text':
                text = elem.text or ''
            elif name == 'page':
                # Drop finished pages so memory stays flat over long dumps
                self._root.clear()
                return Document(title=title, text=text)

        return None

    def close(self):
        """Stop reading and release the underlying file"""
        self._exhausted = True
        if self._file is not None:
            self._file.close()
            self._file = None

    def __iter__(self) -> Iterator[Document]:
        while True:
            document = self.next_document()
            if document is None:
                return
            yield document

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


def iter_documents(documents: Iterable[Optional[Document]]) -> Iterator[Document]:
    """Yield documents from any iterable, stopping at the first None sentinel"""
    for document in documents:
        if document is None:
            return
        yield document
