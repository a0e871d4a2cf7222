# src/evensum/resources/reducer.py
"""Reduce a resource of signed integers to the sum of its positive evens.

Resource text grammar: tokens separated by ASCII whitespace (spaces, tabs, line
breaks). Every token must be an optional single leading "-" followed by
ASCII digits. Other Unicode whitespace (NBSP, vertical tab, ...) is not a
separator. Blank lines are ignored. Any other token fails the whole
resource, never the run.
"""

from __future__ import annotations

import re
from collections.abc import Hashable, Iterable, Iterator
from pathlib import Path

from evensum.contracts import IOFailure, ParseFailure

_TOKEN = re.compile(r"-?[0-9]+")
_SEPARATORS = re.compile(r"[ \t\r\n]+")

RESOURCE_FILE_TEMPLATE = "resource{id}.txt"


def parse_values(resource_id: Hashable, lines: Iterable[str]) -> Iterator[int]:
    """Yield the integers of a resource, validating every token.

    Raises:
        ParseFailure: On the first token that is not a signed integer
    """
    for line_number, line in enumerate(lines, start=1):
        for token in filter(None, _SEPARATORS.split(line)):
            if _TOKEN.fullmatch(token) is None:
                raise ParseFailure(
                    resource_id,
                    f"line {line_number}: invalid integer token {token!r}",
                    line_number=line_number,
                    token=token,
                )
            yield int(token)


def is_positive_even(value: int) -> bool:
    return value > 0 and value % 2 == 0


def sum_positive_evens(values: Iterable[int]) -> int:
    """Sum of the strictly positive even values (0 if there are none)."""
    return sum(v for v in values if is_positive_even(v))


class TextFileReducer:
    """ResourceReducer over a directory of resource<N>.txt files.

    Usage:
        reducer = TextFileReducer(Path("resources"))
        reducer(3)  # sums positive evens in resources/resource3.txt
    """

    def __init__(self, directory: Path, *, encoding: str = "utf-8") -> None:
        self._directory = directory
        self._encoding = encoding

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, resource_id: Hashable) -> Path:
        return self._directory / RESOURCE_FILE_TEMPLATE.format(id=resource_id)

    def __call__(self, resource_id: Hashable) -> int:
        """Sum the positive even values of one resource file.

        Raises:
            IOFailure: If the file cannot be opened or read
            ParseFailure: If the file holds a malformed token or is not valid text
        """
        path = self.path_for(resource_id)
        try:
            with path.open(encoding=self._encoding) as handle:
                return sum_positive_evens(parse_values(resource_id, handle))
        except UnicodeDecodeError as e:
            raise ParseFailure(resource_id, f"{path.name} is not valid {self._encoding} text: {e.reason}") from e
        except OSError as e:
            raise IOFailure(resource_id, f"cannot read {path}: {e.strerror or e}") from e
