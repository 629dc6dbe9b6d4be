from __future__ import annotations

from typing import Iterator


class ValidationErrors:
    """Field name -> message, kept in the order errors were found."""

    def __init__(self, errors: dict[str, str] | None = None) -> None:
        self._errors: dict[str, str] = dict(errors or {})

    def add(self, field: str, message: str) -> None:
        if field not in self._errors:
            self._errors[field] = message

    def clear_field(self, field: str) -> None:
        self._errors.pop(field, None)

    def clear(self) -> None:
        self._errors.clear()

    def first(self) -> tuple[str, str] | None:
        """The blocking error that should receive focus."""
        for field, message in self._errors.items():
            return field, message
        return None

    def as_dict(self) -> dict[str, str]:
        return dict(self._errors)

    def __contains__(self, field: object) -> bool:
        return field in self._errors

    def __getitem__(self, field: str) -> str:
        return self._errors[field]

    def __iter__(self) -> Iterator[str]:
        return iter(self._errors)

    def __len__(self) -> int:
        return len(self._errors)

    def __bool__(self) -> bool:
        return bool(self._errors)
