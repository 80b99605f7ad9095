from __future__ import annotations


class RecordError(ValueError):
    """An e-CF record could not be built or failed business validation."""

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []
