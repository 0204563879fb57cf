class Backoff:
    """큐가 비어 있을 때의 대기 시간 계산기.

    연속으로 빈 큐를 만나면 floor, 2*floor, 4*floor, ... 로 늘리고 ceiling에서 멈춘다.
    작업을 하나라도 처리하면 reset()으로 floor로 돌아간다.

        b = Backoff(5, 60)
        [b.next_interval() for _ in range(6)]  # [5, 10, 20, 40, 60, 60]
    """

    def __init__(self, floor: float, ceiling: float):
        if floor <= 0 or ceiling < floor:
            raise ValueError(f"invalid backoff bounds: floor={floor}, ceiling={ceiling}")
        self.floor = floor
        self.ceiling = ceiling
        self._current = floor

    @property
    def current(self) -> float:
        return self._current

    def next_interval(self) -> float:
        """이번에 쉴 시간을 반환하고, 다음 값을 두 배로 늘린다."""
        interval = self._current
        self._current = min(self._current * 2, self.ceiling)
        return interval

    def reset(self) -> None:
        self._current = self.floor
