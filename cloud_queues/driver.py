"""
Abstract queue driver interface.
Every driver translates these operations onto a concrete queue backend.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple


class Driver(ABC):

    @abstractmethod
    def list_queues(self) -> List[str]:
        """Return the names of all queues."""

    @abstractmethod
    def create_queue(self, queue_name: str):
        """Create a queue."""

    @abstractmethod
    def count_messages(self, queue_name: str) -> int:
        """Return the number of messages in a queue (0 if it does not exist)."""

    @abstractmethod
    def push_message(self, queue_name: str, message: Any):
        """Add a message to a queue, creating the queue if needed."""

    @abstractmethod
    def pop_message(self, queue_name: str, duration: float = 5) -> Tuple[Optional[Any], Optional[str]]:
        """
        Wait up to `duration` seconds for a message.

        Returns:
            (message, receipt), or (None, None) if nothing arrived in time
        """

    @abstractmethod
    def acknowledge_message(self, queue_name: str, receipt: str):
        """Mark a popped message as processed. Unknown receipts are ignored."""

    @abstractmethod
    def peek_queue(self, queue_name: str, index: int = 0, limit: int = 20) -> List[Any]:
        """Return up to `limit` messages starting at `index` without claiming them."""

    @abstractmethod
    def remove_queue(self, queue_name: str):
        """Delete a queue and its messages."""

    @abstractmethod
    def info(self) -> Dict[str, Any]:
        """Return driver and backend metadata."""
