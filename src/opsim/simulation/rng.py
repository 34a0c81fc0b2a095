"""Injectable randomness for the tick engine.

Production code hands the engine a ``random.Random``; tests hand it a
``ScriptedRandom`` so every draw (event trial, DDoS trial, surge factor,
traffic noise) is known in advance.  Both satisfy ``RandomSource``.

Draw order inside one tick is fixed:

  1. event trial            random()        (only when no event is active)
  2. event template         choice()        (only when the trial fires)
  3. pattern shift          choice()        (only on every 60th tick)
  4. traffic noise          random()
  5. DDoS trial             random()
  6. surge factor           uniform(2, 4)   (only when the trial fires
                                             and no botnet is active)
"""

from __future__ import annotations

import random
from collections import deque
from typing import Iterable, Optional, Protocol, Sequence, TypeVar

T = TypeVar("T")


class RandomSource(Protocol):
    def random(self) -> float: ...

    def uniform(self, a: float, b: float) -> float: ...

    def choice(self, seq: Sequence[T]) -> T: ...


def make_rng(seed: Optional[int] = None) -> random.Random:
    """Production source.  A seed makes a whole session reproducible."""
    return random.Random(seed)


class ScriptedRandom:
    """Replays a fixed list of unit draws in [0, 1).

    ``uniform`` and ``choice`` consume one draw each and map it onto their
    range the same way ``random.Random`` does for a single sample.  When the
    script runs out, ``default`` is returned (or IndexError if None).
    """

    def __init__(self, draws: Iterable[float] = (), default: Optional[float] = 0.5) -> None:
        self._draws: deque[float] = deque(draws)
        self._default = default
        self.consumed = 0

    def push(self, *draws: float) -> None:
        self._draws.extend(draws)

    @property
    def remaining(self) -> int:
        return len(self._draws)

    def random(self) -> float:
        self.consumed += 1
        if self._draws:
            return self._draws.popleft()
        if self._default is None:
            raise IndexError("ScriptedRandom exhausted")
        return self._default

    def uniform(self, a: float, b: float) -> float:
        return a + (b - a) * self.random()

    def choice(self, seq: Sequence[T]) -> T:
        if not seq:
            raise IndexError("Cannot choose from an empty sequence")
        idx = min(int(self.random() * len(seq)), len(seq) - 1)
        return seq[idx]
