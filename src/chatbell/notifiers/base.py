"""Notifier interface shared by every backend."""

from abc import ABC, abstractmethod


class NotifierError(Exception):
    """Raised when a backend cannot deliver a message."""

    pass


class Notifier(ABC):
    """A delivery backend for alert text."""

    name: str = ""

    @abstractmethod
    def notify(self, message: str) -> bool:
        """Deliver a message.

        Returns:
            True if the backend reports success, False otherwise

        Raises:
            NotifierError: On transport or I/O failure
        """
