import inspect
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Union

from smartnotes.sync.remote import Subscription

logger = logging.getLogger("smartnotes.sync.identity")


@dataclass(frozen=True)
class User:
    id: str
    email: Optional[str] = None


SessionCallback = Callable[[Optional[User]], Union[None, Awaitable[None]]]


class IdentityProvider:
    """Holds the signed-in user and tells listeners when it changes."""

    def __init__(self) -> None:
        self.current_user: Optional[User] = None
        self._callbacks: List[SessionCallback] = []

    def on_session_change(self, callback: SessionCallback) -> Subscription:
        self._callbacks.append(callback)

        def _remove() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return Subscription(_remove)

    async def _changed(self) -> None:
        user = self.current_user
        for callback in list(self._callbacks):
            result = callback(user)
            if inspect.isawaitable(result):
                await result

    async def sign_in(self, user: User) -> None:
        if self.current_user == user:
            return
        self.current_user = user
        logger.info("signed in: %s", user.id)
        await self._changed()

    async def sign_out(self) -> None:
        if self.current_user is None:
            return
        logger.info("signed out: %s", self.current_user.id)
        self.current_user = None
        await self._changed()
