import logging
from typing import Any, Callable, Dict

from .errors import ApiError


logger = logging.getLogger(__name__)

Unsubscribe = Callable[[], None]


class Subscriptions:
    """
    An ordered set of callbacks.

    Each registration is independent, so the same callback can be subscribed
    twice and is then called twice. Removing a registration takes effect
    immediately, even in the middle of a `notify()`.
    """

    def __init__(self) -> None:
        self.__callbacks: Dict[object, Callable[[Any], None]] = {}

    def __len__(self) -> int:
        return len(self.__callbacks)

    def add(self, callback: Callable[[Any], None]) -> Unsubscribe:
        token = object()
        self.__callbacks[token] = callback

        def unsubscribe() -> None:
            self.__callbacks.pop(token, None)
        return unsubscribe

    def notify(self, value: Any) -> None:
        for token, callback in list(self.__callbacks.items()):
            if token not in self.__callbacks:
                # Unsubscribed by an earlier callback.
                continue
            try:
                callback(value)
            except Exception:
                logger.exception('Subscriber {!r} raised while being notified'.format(callback))

    def clear(self) -> None:
        self.__callbacks.clear()


class ErrorBus:
    """
    Broadcasts every surfaced `ApiError` to its subscribers.

    Nothing is filtered or deduplicated. Each error is published once, no matter
    how many callers were waiting on the request that produced it.
    """

    def __init__(self) -> None:
        self.__subscriptions = Subscriptions()

    def subscribe(self, callback: Callable[[ApiError], None]) -> Unsubscribe:
        return self.__subscriptions.add(callback)

    def publish(self, error: ApiError) -> None:
        logger.info('Publishing {!r} to {} error subscriber(s)'.format(error, len(self.__subscriptions)))
        self.__subscriptions.notify(error)

    def close(self) -> None:
        self.__subscriptions.clear()
