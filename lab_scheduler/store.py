from typing import Callable, Dict, Generic, Iterator, List, Optional, Tuple, TypeVar

T = TypeVar("T")


class Table(Generic[T]):
    """Append-only container of one entity type, keyed by small integers.

    Ids are handed out in increasing order and never reused, even after
    `retain` removes entries, so iteration order is always id order.
    """

    def __init__(self) -> None:
        self._rows: Dict[int, T] = {}
        self._next_id = 0

    def insert(self, value: T) -> int:
        key = self._next_id
        self._rows[key] = value
        self._next_id += 1
        return key

    def insert_unique(self, value: T) -> int:
        # linear scan, the first insertion of an equal value owns the id
        found = self.find(value)
        if found is not None:
            return found
        return self.insert(value)

    def find(self, value: T) -> Optional[int]:
        for key, row in self._rows.items():
            if row == value:
                return key
        return None

    def get(self, key: int) -> Optional[T]:
        return self._rows.get(key)

    def retain(self, predicate: Callable[[int, T], bool]) -> List[int]:
        """Keep only the rows accepted by predicate; return the removed ids.

        Dependent tables are not touched here, callers cascade the removal.
        """
        removed = [key for key, row in self._rows.items() if not predicate(key, row)]
        for key in removed:
            del self._rows[key]
        return removed

    def contains(self, value: T) -> bool:
        return self.find(value) is not None

    def ids(self) -> List[int]:
        return list(self._rows)

    def values(self) -> List[T]:
        return list(self._rows.values())

    def __getitem__(self, key: int) -> T:
        return self._rows[key]

    def __contains__(self, key: object) -> bool:
        return key in self._rows

    def __iter__(self) -> Iterator[Tuple[int, T]]:
        # dict keeps insertion order and ids only grow, so this is id order
        return iter(list(self._rows.items()))

    def __len__(self) -> int:
        return len(self._rows)

    def __repr__(self) -> str:
        return f"Table({self._rows!r})"
