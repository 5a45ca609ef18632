"""\
Ludmila's Datastructures
========================

Author: Akshay Mestry <xa@mes3.dev>
Created on: 18 October, 2026
Last updated on: 18 October, 2026

Containers shared by the request and response wrappers. ``MultiDict``
keeps every value seen for a key, which is what query strings and form
bodies need, while ``Headers`` folds header names to lower case so
lookups ignore the capitalisation used on the wire.
"""

from __future__ import annotations

import typing as t
from collections.abc import Iterable
from collections.abc import Mapping

K = t.TypeVar("K")
V = t.TypeVar("V")
T = t.TypeVar("T")


class MultiDict(dict[K, V]):
    """A dictionary that remembers every value assigned to a key.

    Indexing returns the earliest value, ``getlist`` returns all of
    them and ``to_dict`` flattens the structure into a plain ``dict``
    of first values, which is what the argument resolver and the
    validation layer work with.

    :param mapping: Initial pairs, mapping or another ``MultiDict``,
        defaults to ``None``.
    """

    def __init__(
        self,
        mapping: (
            MultiDict[K, V]
            | Mapping[K, V | list[V]]
            | Iterable[tuple[K, V]]
            | None
        ) = None,
    ) -> None:
        """Initialise the container from the supplied data."""
        super().__init__()
        if mapping is None:
            return
        if isinstance(mapping, MultiDict):
            pairs = mapping.items(multi=True)
        elif isinstance(mapping, Mapping):
            pairs = (
                (key, item)
                for key, value in mapping.items()
                for item in (value if isinstance(value, list) else [value])
            )
        else:
            pairs = mapping
        for key, value in pairs:
            self.add(key, value)

    def __getitem__(self, key: K) -> V:
        """Return the first value stored for ``key``.

        :raises KeyError: When the key is missing.
        """
        return super().__getitem__(key)[0]

    def __setitem__(self, key: K, value: V) -> None:
        """Replace every value stored for ``key`` with ``value``."""
        super().__setitem__(key, [value])

    def get(self, key: K, default: V | T | None = None) -> V | T | None:
        """Return the first value for ``key`` or ``default``."""
        try:
            return self[key]
        except KeyError:
            return default

    def add(self, key: K, value: V) -> None:
        """Append ``value`` to the values stored for ``key``."""
        super().setdefault(key, []).append(value)

    def getlist(self, key: K) -> list[V]:
        """Return a copy of all values stored for ``key``."""
        return list(super().get(key, []))

    def items(self, multi: bool = False) -> t.Iterator[tuple[K, V]]:
        """Iterate over pairs.

        :param multi: Yield every stored value instead of only the first
            one, defaults to ``False``.
        """
        for key, values in super().items():
            if multi:
                for value in values:
                    yield key, value
            else:
                yield key, values[0]

    def to_dict(self) -> dict[K, V]:
        """Flatten into a plain dictionary of first values."""
        return dict(self.items())


class Headers(MultiDict[str, str]):
    """Case-insensitive HTTP header container."""

    def __getitem__(self, key: str) -> str:
        """Return the first value of the header."""
        return super().__getitem__(key.lower())

    def __setitem__(self, key: str, value: str) -> None:
        """Replace the header with a single value."""
        super().__setitem__(key.lower(), value)

    def __delitem__(self, key: str) -> None:
        """Drop the header."""
        super().__delitem__(key.lower())

    def __contains__(self, key: object) -> bool:
        """Return ``True`` when the header is present."""
        return isinstance(key, str) and super().__contains__(key.lower())

    def add(self, key: str, value: str) -> None:
        """Append another value for a repeatable header."""
        super().add(key.lower(), value)

    def getlist(self, key: str) -> list[str]:
        """Return all values of the header."""
        return super().getlist(key.lower())

    def to_wsgi_list(self) -> list[tuple[str, str]]:
        """Return headers as ``(Name, value)`` pairs for the wire."""
        return [
            ("-".join(part.capitalize() for part in key.split("-")), value)
            for key, value in self.items(multi=True)
        ]
