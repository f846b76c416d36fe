"""Notification event model."""

from __future__ import annotations

from html import escape

from movecar.models._base import MoveCarBaseModel


class NotificationEvent(MoveCarBaseModel):
    """One logical "someone wants this car moved" notification.

    Channels render it in their own format; the event itself is
    channel-agnostic.
    """

    user_id: str
    car_title: str
    message: str
    confirm_url: str

    @property
    def title(self) -> str:
        return f"Move car request: {self.car_title}"

    @property
    def body(self) -> str:
        return f"Move car request [{self.car_title}]\nMessage: {self.message}"

    @property
    def html_content(self) -> str:
        lines = "<br>".join(escape(line) for line in self.body.split("\n"))
        link = (
            f'<a href="{escape(self.confirm_url, quote=True)}" '
            'style="font-size:18px;color:#0093E9">[Tap to respond]</a>'
        )
        return f"{lines}<br><br>{link}"
