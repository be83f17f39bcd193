from __future__ import annotations

from collections.abc import Iterator, Mapping, MutableMapping

KEY_DELIMITER = ":"


def combine_key(*segments: str) -> str:
    return KEY_DELIMITER.join(segments)


def split_key(key: str) -> list[str]:
    return key.split(KEY_DELIMITER)


class FlatMap(MutableMapping[str, str]):
    """Ordered mapping of flattened keys to string values.

    Lookups ignore case.  The key keeps the casing it was first stored
    with, so ``m["Foo:Bar"] = "1"; m["foo:bar"] = "2"`` leaves a single
    entry named ``Foo:Bar`` holding ``"2"``.
    """

    def __init__(self, data: Mapping[str, str] | None = None) -> None:
        self._data: dict[str, tuple[str, str]] = {}
        if data:
            self.update(data)

    @staticmethod
    def _fold(key: str) -> str:
        return key.casefold()

    def __getitem__(self, key: str) -> str:
        return self._data[self._fold(key)][1]

    def __setitem__(self, key: str, value: str) -> None:
        folded = self._fold(key)
        existing = self._data.get(folded)
        stored = existing[0] if existing is not None else key
        self._data[folded] = (stored, value)

    def __delitem__(self, key: str) -> None:
        del self._data[self._fold(key)]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self._fold(key) in self._data

    def __iter__(self) -> Iterator[str]:
        return (stored for stored, _ in self._data.values())

    def __len__(self) -> int:
        return len(self._data)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Mapping):
            return NotImplemented
        if len(other) != len(self):
            return False
        return all(k in self and self[k] == v for k, v in other.items())

    def __repr__(self) -> str:
        return f"FlatMap({dict(self.items())!r})"

    def copy(self) -> FlatMap:
        return FlatMap(self)
