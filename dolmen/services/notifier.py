"""User-facing alerts and confirmations."""
import logging
from typing import List, Protocol

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def alert(self, message: str) -> None: ...

    async def confirm(self, prompt: str) -> bool: ...


class CollectingNotifier:
    """
    Notifier for one HTTP request.

    Alerts are collected for the response body; the confirmation answer is
    decided by the request up front.
    """

    def __init__(self, confirmed: bool = False):
        self.confirmed = confirmed
        self.alerts: List[str] = []
        self.prompts: List[str] = []

    def alert(self, message: str) -> None:
        logger.debug(f"Alert: {message}")
        self.alerts.append(message)

    async def confirm(self, prompt: str) -> bool:
        self.prompts.append(prompt)
        return self.confirmed
