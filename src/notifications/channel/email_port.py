"""Outbound email interface implemented by every adapter in this package."""

from abc import ABC, abstractmethod


class EmailPort(ABC):
    channel_name: str = "email"

    @abstractmethod
    def send(self, *, to: str, subject: str, body: str, html_body: str | None = None) -> dict:
        """Deliver one message to ``to``.

        The result carries ``message_id`` and ``status`` (``"sent"`` or
        ``"failed"``); failed sends add an ``error`` string and leave
        ``message_id`` as ``None``.
        """
