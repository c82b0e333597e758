from abc import ABC, abstractmethod
import logging
from typing import Any, Callable, Dict, Optional

from .events import Subscriptions, Unsubscribe
from .model import CacheEntry


logger = logging.getLogger(__name__)


class Cache(ABC):
    """
    An abstraction of a response cache.

    A response cache has a relatively narrow scope: to remember the last response value written for a fingerprint
    such that it can be recalled later, and to tell anyone interested when that happens. Note that this deliberately
    precludes certain responsibilities such as expiry. Entries only change when they are written; the fetch policies
    decide when that is.
    """

    @abstractmethod
    def read(self, fingerprint: str) -> Optional[CacheEntry]:
        """
        Retrieve the entry for `fingerprint`.

        @param fingerprint
          The key of the request to look up.
        @return
          The cache entry, or `None` if nothing was written for `fingerprint` yet.
        """

    @abstractmethod
    def write(self, fingerprint: str, value: Any) -> CacheEntry:
        """
        Replace the entry for `fingerprint`, then notify its subscribers.

        Subscribers are called synchronously, in the order they subscribed, with the new value. They are called even
        if `value` equals the value already cached.

        @param fingerprint
          The key of the request the value belongs to.
        @param value
          The response value to remember.
        @return
          The new cache entry.
        """

    @abstractmethod
    def subscribe(self, fingerprint: str, callback: Callable[[Any], None]) -> Unsubscribe:
        """
        Register `callback` for writes to `fingerprint`.

        @return
          A function that removes exactly this registration. Calling it more than once is harmless.
        """

    def close(self):
        """
        Close any resources associated with the cache.
        """


class MemoryCache(Cache):
    """
    Keeps entries in a dictionary for the lifetime of the cache object.
    """

    def __init__(self) -> None:
        self.__entries: Dict[str, CacheEntry] = {}
        self.__subscriptions: Dict[str, Subscriptions] = {}

    def read(self, fingerprint: str) -> Optional[CacheEntry]:
        entry = self.__entries.get(fingerprint)
        if entry is None:
            logger.info('No cache entry for {}'.format(fingerprint))
        else:
            logger.info('Found cache entry for {}'.format(fingerprint))
        return entry

    def write(self, fingerprint: str, value: Any) -> CacheEntry:
        entry = CacheEntry(fingerprint=fingerprint, value=value)
        self.__entries[fingerprint] = entry
        logger.info('Wrote cache entry for {}'.format(fingerprint))

        subscriptions = self.__subscriptions.get(fingerprint)
        if subscriptions is not None:
            subscriptions.notify(value)
        return entry

    def subscribe(self, fingerprint: str, callback: Callable[[Any], None]) -> Unsubscribe:
        subscriptions = self.__subscriptions.setdefault(fingerprint, Subscriptions())
        return subscriptions.add(callback)

    def close(self):
        self.__entries.clear()
        for subscriptions in self.__subscriptions.values():
            subscriptions.clear()
        self.__subscriptions.clear()
