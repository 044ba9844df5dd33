"""
Inverted keyword index over holding names.

Maps each lowercase word of a holding's name to the positions of the holdings
whose names contain it. Positions refer to the portfolio's dense holding list,
so removing a holding requires shifting every later position down by one.
"""

from collections.abc import Iterable
from typing import Optional


def tokenize(name: str) -> list[str]:
    """
    Split a name into distinct lowercase whitespace-separated tokens.

    Args:
        name: Holding name

    Returns:
        Tokens in first-seen order, without duplicates
    """
    return list(dict.fromkeys(name.lower().split()))


class KeywordIndex:
    """
    Keyword -> positions mapping kept in step with a portfolio's holdings.

    A keyword with no positions is never kept in the mapping.
    """

    def __init__(self):
        self._index: dict[str, list[int]] = {}

    def index(self, name: str, position: int) -> None:
        """Record ``position`` under every token of ``name``."""
        for token in tokenize(name):
            self._index.setdefault(token, []).append(position)

    def deindex(self, name: str, position: int) -> None:
        """
        Remove one occurrence of ``position`` from every token of ``name``.

        Tokens left with no positions are dropped.
        """
        for token in tokenize(name):
            positions = self._index.get(token)
            if positions is None:
                continue
            if position in positions:
                positions.remove(position)
            if not positions:
                del self._index[token]

    def shift_positions_after_removal(self, removed_position: int) -> None:
        """Decrement every stored position greater than ``removed_position``."""
        for positions in self._index.values():
            for i, position in enumerate(positions):
                if position > removed_position:
                    positions[i] = position - 1

    def lookup(self, keywords: Iterable[str]) -> Optional[set[int]]:
        """
        Find the positions whose names contain every keyword.

        Args:
            keywords: Search words, matched case-insensitively

        Returns:
            Intersection of the keywords' positions, or None when no
            keywords were given (no name filter)
        """
        result: Optional[set[int]] = None
        for keyword in keywords:
            for token in keyword.lower().split():
                positions = set(self._index.get(token, ()))
                result = positions if result is None else result & positions
        return result

    def positions_for(self, keyword: str) -> list[int]:
        """Positions recorded under a single keyword (empty if absent)."""
        return list(self._index.get(keyword.lower(), ()))

    def keywords(self) -> list[str]:
        """All indexed keywords, sorted."""
        return sorted(self._index)

    def as_dict(self) -> dict[str, list[int]]:
        """Copy of the full mapping."""
        return {keyword: list(positions) for keyword, positions in self._index.items()}

    def clear(self) -> None:
        self._index.clear()

    def __contains__(self, keyword: object) -> bool:
        return isinstance(keyword, str) and keyword.lower() in self._index

    def __len__(self) -> int:
        return len(self._index)

    def __repr__(self) -> str:
        return f"KeywordIndex({self._index!r})"
