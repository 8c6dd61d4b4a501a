from datetime import datetime


class BookingError(Exception):
    """Base for failures the booking workflow reports back to the caller."""

    status_code = 412
    retryable = False

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail

    def to_dict(self) -> dict:
        return {"detail": self.detail, "error": type(self).__name__, "retryable": self.retryable}


class InvalidScheduleConfiguration(BookingError):
    """Work schedule is empty or has no enabled day with usable hours."""

    def __init__(self, detail: str = "Work hours not set up. Configure your weekly schedule first.") -> None:
        super().__init__(detail)


class ServiceExceedsCapacity(BookingError):
    def __init__(self, duration_minutes: int, max_daily_minutes: int) -> None:
        super().__init__(
            f"Service duration ({duration_minutes} min) exceeds your longest work day ({max_daily_minutes} min)."
        )
        self.duration_minutes = duration_minutes
        self.max_daily_minutes = max_daily_minutes


class SlotSearchExhausted(BookingError):
    """No slot within the one-year search horizon.

    ``attempts`` holds a handful of example near-misses (collisions, times just
    outside the working window) for support debugging. ``sitting_index`` is
    1-based and only set once the orchestrator knows which sitting failed.
    """

    def __init__(
        self,
        attempts: list[str],
        searched_from: datetime,
        time_zone: str,
        sitting_index: int | None = None,
    ) -> None:
        self.attempts = list(attempts)
        self.searched_from = searched_from
        self.time_zone = time_zone
        self.sitting_index = sitting_index
        super().__init__(self._build_detail())

    def _build_detail(self) -> str:
        head = (
            f"Could not find slot for sitting {self.sitting_index} within the next year."
            if self.sitting_index is not None
            else "Could not find an available slot within the next year."
        )
        lines = [head]
        if self.attempts:
            lines.append(f"Failures (first {len(self.attempts)} attempts):")
            lines.extend(self.attempts)
        lines.append(f"TZ: {self.time_zone}")
        lines.append(f"Start: {self.searched_from.isoformat()}")
        return "\n".join(lines)

    def for_sitting(self, sitting_index: int) -> "SlotSearchExhausted":
        return SlotSearchExhausted(self.attempts, self.searched_from, self.time_zone, sitting_index)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update(
            sitting_index=self.sitting_index,
            attempts=self.attempts,
            searched_from=self.searched_from.isoformat(),
            time_zone=self.time_zone,
        )
        return data


class OutsideWorkingHours(BookingError):
    pass


class OverlapAtCommit(BookingError):
    """The write-time overlap check found a collision the search snapshot missed."""

    status_code = 409
    retryable = True

    def __init__(self, start: datetime, end: datetime) -> None:
        super().__init__(f"The slot {start.isoformat()} - {end.isoformat()} is no longer available.")
        self.start = start
        self.end = end
