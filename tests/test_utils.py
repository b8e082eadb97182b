"""Shared test utilities."""

START_MS = 1_700_000_000_000


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, start: int = START_MS):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms
