import asyncio
from functools import partial
import logging
from typing import Any, Awaitable, Callable, Dict


logger = logging.getLogger(__name__)


class InFlightRegistry:
    """
    Shares one pending network call between concurrent identical requests.

    Entries are keyed by fingerprint and hold the future of the call that is currently running. An entry is removed
    as soon as its call settles, before anyone awaiting it resumes.
    """

    def __init__(self) -> None:
        self.__entries: Dict[str, asyncio.Future] = {}

    def dedupe(self, fingerprint: str, start: Callable[[], Awaitable[Any]], bypass: bool = False) -> asyncio.Future:
        """
        Join the call in flight for `fingerprint`, or start a new one.

        @param fingerprint
          The key of the request.
        @param start
          Called without arguments to begin a new call. Must return an awaitable, typically a coroutine.
        @param bypass
          Always start a new call, and keep it out of the registry. A bypassed call never replaces or evicts the
          recorded one.
        @return
          The future of the call. Concurrent non-bypassed callers receive the same object.
        """
        if not bypass:
            existing = self.__entries.get(fingerprint)
            if existing is not None:
                logger.info('Joining the request already in flight for {}'.format(fingerprint))
                return existing

        pending = asyncio.ensure_future(start())
        if bypass:
            logger.info('Starting a request for {} outside the in-flight registry'.format(fingerprint))
            return pending

        logger.info('Starting a request for {}'.format(fingerprint))
        self.__entries[fingerprint] = pending
        pending.add_done_callback(partial(self._settled, fingerprint))
        return pending

    def is_in_flight(self, fingerprint: str) -> bool:
        return fingerprint in self.__entries

    def _settled(self, fingerprint: str, pending: asyncio.Future) -> None:
        # A newer call may already occupy the slot.
        if self.__entries.get(fingerprint) is pending:
            del self.__entries[fingerprint]
