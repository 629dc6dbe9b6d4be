from abc import ABC, abstractmethod


class SessionStoragePort(ABC):
    """Durable key-value storage scoped to one browser session."""

    @abstractmethod
    def get_item(self, session_id: str, key: str) -> str | None:
        raise NotImplementedError

    @abstractmethod
    def set_item(self, session_id: str, key: str, value: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def remove_item(self, session_id: str, key: str) -> None:
        raise NotImplementedError
