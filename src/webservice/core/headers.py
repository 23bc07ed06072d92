"""Ordered, case-insensitive multi-value header container."""

from typing import Dict, Iterator, List, Mapping, Optional, Tuple


class HeaderBag:
    """
    Header name -> ordered list of values.

    Names are matched case-insensitively; the casing used on first insertion
    is the one written to the wire. Every operation is total.

    Example:
        >>> bag = HeaderBag()
        >>> bag.add("Accept", "text/html")
        >>> bag.add("accept", "application/json")
        >>> bag.values("ACCEPT")
        ['text/html', 'application/json']
        >>> bag.set("Accept", "*/*")
        >>> bag.values("Accept")
        ['*/*']
    """

    __slots__ = ("_items",)

    def __init__(self, headers: Optional[Mapping[str, str]] = None):
        # lower name -> (display name, values)
        self._items: Dict[str, Tuple[str, List[str]]] = {}
        if headers:
            for name, value in headers.items():
                self.add(name, value)

    def add(self, name: str, value: str) -> None:
        """Append ``value`` to the values stored under ``name``."""
        key = name.lower()
        if key in self._items:
            self._items[key][1].append(value)
        else:
            self._items[key] = (name, [value])

    def set(self, name: str, value: str) -> None:
        """Replace every value stored under ``name`` with ``value``."""
        key = name.lower()
        display = self._items[key][0] if key in self._items else name
        self._items[key] = (display, [value])

    def delete(self, name: str) -> None:
        self._items.pop(name.lower(), None)

    def values(self, name: str) -> List[str]:
        """Values for ``name`` in insertion order (a copy; empty if absent)."""
        entry = self._items.get(name.lower())
        return list(entry[1]) if entry else []

    def get(self, name: str) -> str:
        """First value for ``name`` or an empty string."""
        entry = self._items.get(name.lower())
        return entry[1][0] if entry and entry[1] else ""

    def clone(self) -> "HeaderBag":
        """Independent deep copy."""
        other = HeaderBag()
        other._items = {key: (display, list(vals)) for key, (display, vals) in self._items.items()}
        return other

    def items(self) -> Iterator[Tuple[str, List[str]]]:
        for display, vals in self._items.values():
            yield display, list(vals)

    def to_dict(self) -> Dict[str, str]:
        """
        Flatten for the transport.

        requests sends one line per header, so multiple values are folded
        with ``", "`` as allowed by RFC 9110.
        """
        return {display: ", ".join(vals) for display, vals in self._items.values()}

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._items

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[str]:
        for display, _ in self._items.values():
            yield display

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HeaderBag):
            return NotImplemented
        return {k: v[1] for k, v in self._items.items()} == {k: v[1] for k, v in other._items.items()}

    def __repr__(self) -> str:
        return f"HeaderBag({dict(self.items())!r})"
