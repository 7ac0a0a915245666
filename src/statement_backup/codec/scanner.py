"""Locate insert tuples in backup text.

The scanner walks the document once, left to right. After each insert
marker it runs a two-state machine (outside/inside a quoted string) with a
parenthesis depth counter, emitting the inner text of every top-level tuple
until the statement terminator. Quoted parentheses, commas and semicolons
therefore never split or end a tuple.
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Pattern, Tuple

from .exceptions import MissingMetadataBlockError
from .literals import QUOTE, SqlValue, extract_values
from .schema import STATEMENT_MARKER, TRANSACTION_COLUMNS, TRANSACTION_MARKER


logger = logging.getLogger(__name__)

# Characters that change scanner state outside a string
_STRUCTURAL = re.compile(r"[';()]")
# Start of a region in which markers are not recognised
_INERT_START = re.compile(r"'|--")


class ScanState(Enum):
    """Scanner state"""
    OUTSIDE_STRING = "outside_string"
    INSIDE_STRING = "inside_string"


@dataclass
class ScanResult:
    """Rows found by a full document scan"""
    rows: List[List[SqlValue]] = field(default_factory=list)
    blocks: int = 0
    dropped: int = 0


def _string_end(text: str, index: int) -> int:
    """Offset just past the string literal whose body starts at ``index``"""
    length = len(text)
    while True:
        quote = text.find(QUOTE, index)
        if quote == -1:
            return length
        if quote + 1 < length and text[quote + 1] == QUOTE:
            index = quote + 2
            continue
        return quote + 1


class BlockScanner:
    """Finds every complete top-level tuple after each occurrence of a marker"""

    def __init__(self, marker: Pattern = TRANSACTION_MARKER,
                 min_columns: int = len(TRANSACTION_COLUMNS)):
        self.marker = marker
        self.min_columns = min_columns

    def scan(self, text: str) -> ScanResult:
        """Scan the whole document and extract the values of every tuple.

        Tuples with fewer than ``min_columns`` values are dropped and counted.
        """
        result = ScanResult()

        for spans in self.iter_blocks(text):
            result.blocks += 1
            for inner in spans:
                values = extract_values(inner)
                if len(values) < self.min_columns:
                    result.dropped += 1
                    logger.debug(f"Dropped tuple with {len(values)} values: {inner[:80]!r}")
                    continue
                result.rows.append(values)

        return result

    def iter_blocks(self, text: str) -> Iterator[List[str]]:
        """Yield the tuple texts of each insert block, in document order"""
        cursor = 0

        while True:
            match = self.marker.search(text, cursor)
            if match is None:
                return

            in_code, cursor = self._advance(text, cursor, match.start())
            if not in_code:
                # Marker text inside a string literal or comment
                continue

            spans, cursor = self.scan_block(text, match.end())
            yield spans

    def scan_block(self, text: str, start: int) -> Tuple[List[str], int]:
        """Collect top-level tuples from ``start`` up to the block terminator.

        Args:
            text: Full document text
            start: Offset just after the marker

        Returns:
            Inner text of each completed tuple, and the offset where the scan
            stopped (the terminating ``;`` or the end of the text)
        """
        spans = []
        state = ScanState.OUTSIDE_STRING
        depth = 0
        tuple_start = -1
        index = start
        length = len(text)

        while index < length:
            if state is ScanState.INSIDE_STRING:
                quote = text.find(QUOTE, index)
                if quote == -1:
                    # Unterminated string runs to the end of the document
                    return spans, length
                if quote + 1 < length and text[quote + 1] == QUOTE:
                    index = quote + 2
                    continue
                state = ScanState.OUTSIDE_STRING
                index = quote + 1
                continue

            match = _STRUCTURAL.search(text, index)
            if match is None:
                return spans, length
            index = match.start()
            char = match.group()

            if char == QUOTE:
                state = ScanState.INSIDE_STRING
            elif char == "(":
                if depth == 0:
                    tuple_start = index
                depth += 1
            elif char == ")":
                if depth > 0:
                    depth -= 1
                    if depth == 0:
                        spans.append(text[tuple_start + 1:index])
                        tuple_start = -1
            elif depth == 0:
                return spans, index

            index += 1

        return spans, length

    def _advance(self, text: str, cursor: int, target: int) -> Tuple[bool, int]:
        """Move from ``cursor`` (outside any string) towards ``target``.

        Returns whether ``target`` lies outside string literals and ``--``
        comments, and the offset to continue searching from.
        """
        index = cursor

        while True:
            match = _INERT_START.search(text, index, target)
            if match is None:
                return True, target

            if match.group() == QUOTE:
                end = _string_end(text, match.end())
            else:
                newline = text.find("\n", match.end())
                end = len(text) if newline == -1 else newline + 1

            if end > target:
                return False, end
            index = end


class MetadataLocator:
    """Finds the statement header tuple of a document.

    Only the first header insert is used. Later ones are counted so callers
    can report them.
    """

    def __init__(self, marker: Pattern = STATEMENT_MARKER):
        self.scanner = BlockScanner(marker, min_columns=0)

    def locate(self, text: str) -> Tuple[List[SqlValue], int]:
        """Extract the header values.

        Returns:
            The values of the first header tuple and the number of header
            inserts in the document

        Raises:
            MissingMetadataBlockError: If no header insert with a tuple exists
        """
        headers = [spans for spans in self.scanner.iter_blocks(text) if spans]

        if not headers:
            raise MissingMetadataBlockError("No statements insert found in document")

        if len(headers) > 1:
            logger.warning(f"Document has {len(headers)} statement headers, using the first")

        return extract_values(headers[0][0]), len(headers)
