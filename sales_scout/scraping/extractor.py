"""Extraction of the embedded product object from product page markup.

Product pages ship their data as a JavaScript assignment inside an inline
script, e.g.::

    <script>
      var product = {"title": "...", "total_sold": 1234, "variants": [{...}]};
    </script>

The object may nest arbitrarily, so its extent is found by counting braces
rather than by regex. Anything unexpected in the markup yields ``None``.
"""

import json
import re
from typing import List, Optional, Tuple

from bs4 import BeautifulSoup
from loguru import logger
from pydantic import ValidationError

from ..storage.models import ExtractionResult

SOLD_MARKER = '"total_sold"'
ASSIGNMENT_PATTERN = r"\bproduct\s*=(?!=)"


def find_balanced_literal(
    text: str, start: int, max_length: Optional[int] = None
) -> Optional[Tuple[int, int]]:
    """Find the extent of the brace-delimited literal opening at ``start``.

    Scans from the ``{`` at ``start`` keeping a depth counter; the literal
    ends where depth returns to zero. Braces inside double-quoted strings
    are skipped.

    Args:
        text: Text containing the literal
        start: Index of the opening brace
        max_length: Give up once the literal grows past this many characters

    Returns:
        ``(start, end)`` slice bounds including both braces, or None if the
        literal is unbalanced, too long, or ``start`` is not a ``{``
    """
    if start < 0 or start >= len(text) or text[start] != "{":
        return None

    limit = len(text) if max_length is None else min(len(text), start + max_length)

    depth = 0
    in_string = False
    escaped = False

    for index in range(start, limit):
        char = text[index]

        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return start, index + 1

    return None


class ProductExtractor:
    """Pulls ``{productName, totalSold}`` out of a product page."""

    def __init__(
        self,
        marker: str = SOLD_MARKER,
        assignment_pattern: str = ASSIGNMENT_PATTERN,
        max_literal_length: Optional[int] = 2_000_000,
    ):
        self.marker = marker
        self.assignment: re.Pattern = re.compile(assignment_pattern)
        self.max_literal_length = max_literal_length

    @staticmethod
    def script_texts(markup: str) -> List[str]:
        """Raw text of every script element, in document order."""
        soup = BeautifulSoup(markup, "html.parser")
        return [script.get_text() for script in soup.find_all("script")]

    def select_script(self, scripts: List[str]) -> Optional[Tuple[str, int]]:
        """First script holding both the sold marker and the assignment.

        Returns:
            ``(script_text, assignment_end)`` or None
        """
        for text in scripts:
            if self.marker not in text:
                continue
            match = self.assignment.search(text)
            if match:
                return text, match.end()
        return None

    def extract_literal(self, markup: str) -> Optional[str]:
        """Source text of the embedded product object, or None."""
        selected = self.select_script(self.script_texts(markup))
        if selected is None:
            logger.debug("No script with product data found")
            return None

        script, offset = selected
        brace = script.find("{", offset)
        bounds = find_balanced_literal(script, brace, self.max_literal_length)
        if bounds is None:
            logger.debug("Product literal is unbalanced or truncated")
            return None

        return script[bounds[0]:bounds[1]]

    def extract(self, markup: str) -> Optional[ExtractionResult]:
        """Extract product name and total sold from page markup.

        Only the first qualifying script is considered; if its object
        cannot be parsed the page counts as having no data.

        Args:
            markup: Page HTML

        Returns:
            ExtractionResult, or None when the page carries no usable data
        """
        literal = self.extract_literal(markup)
        if literal is None:
            return None

        try:
            data = json.loads(literal)
        except (ValueError, RecursionError) as e:
            logger.debug(f"Product literal is not valid JSON: {e}")
            return None

        if not isinstance(data, dict):
            return None

        total_sold = data.get("total_sold")
        if total_sold is None or isinstance(total_sold, (bool, float)):
            logger.debug(f"Unusable total_sold value: {total_sold!r}")
            return None

        title = data.get("title")
        try:
            return ExtractionResult(
                product_name=title if isinstance(title, str) else "",
                total_sold=total_sold,
            )
        except ValidationError as e:
            logger.debug(f"Invalid product data: {e}")
            return None
