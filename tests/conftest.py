import random
from typing import Iterable

import pytest

from civrise.helper.world_helpers import create_civilization
from civrise.models import SimulationState


class ScriptedRandom(random.Random):
    """
    random.Random whose random() replays a fixed script, then repeats the
    last value. uniform() and the other float helpers derive from random(),
    so they follow the script too.
    """

    def __init__(self, values: Iterable[float] = (0.5,)) -> None:
        super().__init__(0)
        self._values = list(values) or [0.5]
        self._pos = 0
        self.calls = 0

    def random(self) -> float:
        self.calls += 1
        value = self._values[min(self._pos, len(self._values) - 1)]
        self._pos += 1
        return value


@pytest.fixture
def state() -> SimulationState:
    """Fresh seeded game with the opening log line cleared."""
    s = create_civilization(seed=1234)
    s.logs.clear()
    return s
