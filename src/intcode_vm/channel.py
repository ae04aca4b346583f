"""I/O channel: FIFO input queue and append-only output log."""

from collections import deque
from typing import Deque, Iterable, Iterator, List

from .errors import EmptyOutputLog, InputExhausted
from .state import require_int


class InputQueue:
    """FIFO of values consumed front to back by the Input instruction."""

    def __init__(self, values: Iterable[int] = ()):
        self._values: Deque[int] = deque()
        self.extend(values)

    def __len__(self) -> int:
        return len(self._values)

    def extend(self, values: Iterable[int]) -> None:
        """Append values, in order, to the tail of the queue."""
        self._values.extend([require_int(v, "Input value") for v in values])

    def pop(self) -> int:
        """Remove and return the front value.

        Raises:
            InputExhausted: If the queue is empty
        """
        if not self._values:
            raise InputExhausted("Input instruction executed with empty input queue")
        return self._values.popleft()

    def pending(self) -> List[int]:
        return list(self._values)


class OutputLog:
    """Append-only record of every value produced by Output instructions."""

    def __init__(self):
        self._values: List[int] = []

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[int]:
        return iter(self._values)

    def append(self, value: int) -> None:
        self._values.append(value)

    def last(self) -> int:
        """Most recently appended value.

        Raises:
            EmptyOutputLog: If nothing has been output yet
        """
        if not self._values:
            raise EmptyOutputLog("No output has been produced yet")
        return self._values[-1]

    def snapshot(self) -> List[int]:
        return list(self._values)
