"""Case-insensitive request headers.

Wraps the raw ``(name, value)`` byte pairs from the ASGI scope and
decodes them on access. Read-only: response headers live on the context.
"""

from collections.abc import Iterator, Mapping


class Headers(Mapping[str, str]):
    """Immutable, case-insensitive view over raw ASGI header pairs.

    ``headers["Content-Type"]`` returns the first value for the name;
    ``get_list`` returns every value in arrival order.
    """

    __slots__ = ("_raw",)

    def __init__(self, raw: tuple[tuple[bytes, bytes], ...] = ()) -> None:
        self._raw = raw

    def _values(self, key: str) -> Iterator[str]:
        wanted = key.lower().encode("latin-1")
        for name, value in self._raw:
            if name.lower() == wanted:
                yield value.decode("latin-1")

    def __getitem__(self, key: str) -> str:
        for value in self._values(key):
            return value
        raise KeyError(key)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        return next(self._values(key), None) is not None

    def __iter__(self) -> Iterator[str]:
        seen: set[str] = set()
        for name, _ in self._raw:
            key = name.decode("latin-1").lower()
            if key not in seen:
                seen.add(key)
                yield key

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def __repr__(self) -> str:
        items = ", ".join(f"{k!r}: {self[k]!r}" for k in self)
        return f"Headers({{{items}}})"

    def get(self, key: str, default: str | None = None) -> str | None:  # type: ignore[override]
        """Return the first value for *key*, or *default* if missing."""
        return next(self._values(key), default)

    def get_list(self, key: str) -> list[str]:
        """Return all values for *key*."""
        return list(self._values(key))

    @property
    def raw(self) -> tuple[tuple[bytes, bytes], ...]:
        """The undecoded header pairs, as received."""
        return self._raw
