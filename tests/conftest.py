from __future__ import annotations

import pytest

from requests_mock import Mocker


class TimeController:
    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.advance(seconds)

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def requests_mock():
    with Mocker() as mock:
        yield mock


@pytest.fixture
def clock() -> TimeController:
    return TimeController()
