"""Fixed-capacity ring buffer with push and pop at both ends."""

from __future__ import annotations

from typing import Generic, Iterable, Iterator, List, Optional, TypeVar

T = TypeVar("T")


class CircularBuffer(Generic[T]):
    """A ring buffer of fixed capacity."""

    def __init__(self, capacity: int = 0) -> None:
        self._items: List[Optional[T]] = []
        self._capacity = 0
        self._front = 0
        self._size = 0
        if capacity:
            self.set_capacity(capacity)

    @property
    def capacity(self) -> int:
        return self._capacity

    def set_capacity(self, capacity: int) -> None:
        """Resize the storage; the contents are discarded unless the size is unchanged."""
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        if capacity == self._capacity:
            return
        self._capacity = capacity
        self._items = [None] * capacity
        self._front = 0
        self._size = 0

    def clear(self) -> None:
        self._items = [None] * self._capacity
        self._front = 0
        self._size = 0

    def available_to_read(self) -> int:
        return self._size

    def available_to_write(self) -> int:
        return self._capacity - self._size

    def __len__(self) -> int:
        return self._size

    def __iter__(self) -> Iterator[T]:
        for offset in range(self._size):
            yield self._items[self._slot(offset)]  # type: ignore[misc]

    def _slot(self, offset: int) -> int:
        return (self._front + offset) % self._capacity

    def _require_space(self, count: int) -> None:
        if count > self.available_to_write():
            raise IndexError("not enough room in circular buffer")

    def _require_data(self, count: int) -> None:
        if count < 0:
            raise ValueError("count must not be negative")
        if count > self._size:
            raise IndexError("not enough data in circular buffer")

    def push_back(self, value: T) -> None:
        self._require_space(1)
        self._items[self._slot(self._size)] = value
        self._size += 1

    def extend_back(self, values: Iterable[T]) -> None:
        """Append all values at the back, keeping their order."""
        values = list(values)
        self._require_space(len(values))
        for value in values:
            self.push_back(value)

    def push_front(self, value: T) -> None:
        self._require_space(1)
        self._front = (self._front - 1) % self._capacity
        self._items[self._front] = value
        self._size += 1

    def extend_front(self, values: Iterable[T]) -> None:
        """Prepend all values at the front, keeping their order."""
        values = list(values)
        self._require_space(len(values))
        for value in reversed(values):
            self.push_front(value)

    def front(self) -> T:
        self._require_data(1)
        return self._items[self._front]  # type: ignore[return-value]

    def back(self) -> T:
        self._require_data(1)
        return self._items[self._slot(self._size - 1)]  # type: ignore[return-value]

    def __getitem__(self, index: int) -> T:
        if index < 0:
            index += self._size
        if not 0 <= index < self._size:
            raise IndexError("circular buffer index out of range")
        return self._items[self._slot(index)]  # type: ignore[return-value]

    def pop_back(self) -> T:
        self._require_data(1)
        self._size -= 1
        slot = self._slot(self._size)
        value = self._items[slot]
        self._items[slot] = None
        return value  # type: ignore[return-value]

    def pop_back_many(self, count: int) -> List[T]:
        """Remove the last ``count`` items and return them in buffer order."""
        self._require_data(count)
        result = [self.pop_back() for _ in range(count)]
        result.reverse()
        return result

    def pop_front(self) -> T:
        self._require_data(1)
        value = self._items[self._front]
        self._items[self._front] = None
        self._front = (self._front + 1) % self._capacity
        self._size -= 1
        return value  # type: ignore[return-value]

    def pop_front_many(self, count: int) -> List[T]:
        """Remove the first ``count`` items and return them in buffer order."""
        self._require_data(count)
        return [self.pop_front() for _ in range(count)]