from __future__ import annotations

from typing import Protocol


class KeyValueStorage(Protocol):
    """Durable key-value medium holding named text slots."""

    def get(self, key: str) -> str | None:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def delete(self, key: str) -> None:
        ...
