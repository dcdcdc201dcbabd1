from typing import Any, Optional


class AssertionDataError(Exception):
    """A located creation event whose payload does not carry a block hash."""

    def __init__(self, message: str, raw_data: Optional[Any] = None) -> None:
        super().__init__(message)
        self.raw_data = raw_data


class MonitorCancelled(Exception):
    pass
