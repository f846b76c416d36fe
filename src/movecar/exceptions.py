"""Custom exception hierarchy for movecar."""

from __future__ import annotations


class MoveCarError(Exception):
    """Base exception for all movecar errors."""


class MoveCarConfigError(MoveCarError):
    """Invalid or missing configuration."""


class BadRequestError(MoveCarError):
    """A request body could not be decoded or validated."""


class RateLimitedError(MoveCarError):
    """A notify call arrived while the user's cooldown lock is still live.

    The caller must surface a "too frequent, retry later" condition.
    Session state is left untouched when this is raised.
    """

    def __init__(
        self,
        message: str,
        *,
        user_id: str = "",
        retry_after: float | None = None,
    ) -> None:
        self.user_id = user_id
        self.retry_after = retry_after
        super().__init__(message)


class BackingStoreUnavailableError(MoveCarError):
    """The expiring key-value store could not be reached.

    Fatal to the current call; nothing in movecar retries it.
    """

    def __init__(
        self,
        message: str,
        *,
        operation: str = "",
        key: str = "",
    ) -> None:
        self.operation = operation
        self.key = key
        super().__init__(message)


class ChannelDispatchError(MoveCarError):
    """A single push channel failed (network error or non-2xx reply).

    Only ever recorded on a :class:`~movecar.notify.ChannelOutcome`;
    the dispatcher never raises it to its caller.
    """

    def __init__(
        self,
        message: str,
        *,
        channel: str = "",
        status_code: int | None = None,
    ) -> None:
        self.channel = channel
        self.status_code = status_code
        super().__init__(message)
