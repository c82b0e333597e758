"""
Decides, per request, whether to answer from the cache, from the network, or both.

Every fetch policy is a small strategy object. The engine owns the shared state (cache, in-flight registry and error
bus) and offers the building blocks the strategies combine: resolve from a value, fail with an error, fetch, and
fetch-then-store.
"""

from abc import ABC, abstractmethod
import asyncio
from dataclasses import dataclass
from enum import Enum
import logging
from typing import Any, Awaitable, Callable, Dict, Set, Union

from .cache import Cache
from .errors import ApiCacheMissError, ApiError
from .events import ErrorBus
from .fingerprint import fingerprint
from .inflight import InFlightRegistry
from .model import RequestDescriptor


logger = logging.getLogger(__name__)

Send = Callable[[RequestDescriptor], Awaitable[Any]]


class FetchPolicy(Enum):
    NO_CACHE = 'no-cache'
    """
    Always go to the network. Never read or write the cache.
    """

    CACHE_ONLY = 'cache-only'
    """
    Never go to the network. Fail with `ApiCacheMissError` if nothing is cached.
    """

    CACHE_FIRST = 'cache-first'
    """
    Answer from the cache when possible, otherwise fetch and cache the result.
    """

    FETCH_FIRST = 'fetch-first'
    """
    Always fetch, and cache the result.
    """

    CACHE_AND_FETCH = 'cache-and-fetch'
    """
    Answer from the cache when possible and refresh it in the background. Otherwise fetch and cache the result.
    """


@dataclass
class Execution:
    """
    A single call to `FetchPolicyEngine.execute()`.
    """
    request: RequestDescriptor
    fingerprint: str
    bypass: bool


class Strategy(ABC):
    @abstractmethod
    def execute(self, engine: 'FetchPolicyEngine', execution: Execution) -> asyncio.Future:
        """
        Produce the caller's result for `execution`.
        """


class NoCache(Strategy):
    def execute(self, engine, execution):
        return engine.fetch(execution)


class CacheOnly(Strategy):
    def execute(self, engine, execution):
        entry = engine.cache.read(execution.fingerprint)
        if entry is None:
            return engine.rejected(ApiCacheMissError())
        return engine.resolved(entry.value)


class FetchFirst(Strategy):
    def execute(self, engine, execution):
        return engine.fetch_and_store(execution)


class CacheFirst(Strategy):
    def execute(self, engine, execution):
        entry = engine.cache.read(execution.fingerprint)
        if entry is None:
            return engine.fetch_and_store(execution)
        return engine.resolved(entry.value)


class CacheAndFetch(Strategy):
    def execute(self, engine, execution):
        entry = engine.cache.read(execution.fingerprint)
        if entry is None:
            return engine.fetch_and_store(execution)
        engine.refresh_in_background(execution)
        return engine.resolved(entry.value)


STRATEGIES: Dict[FetchPolicy, Strategy] = {
    FetchPolicy.NO_CACHE: NoCache(),
    FetchPolicy.CACHE_ONLY: CacheOnly(),
    FetchPolicy.CACHE_FIRST: CacheFirst(),
    FetchPolicy.FETCH_FIRST: FetchFirst(),
    FetchPolicy.CACHE_AND_FETCH: CacheAndFetch(),
}


class FetchPolicyEngine:
    def __init__(self, send: Send, cache: Cache, registry: InFlightRegistry, error_bus: ErrorBus) -> None:
        """
        @param send
          Performs one network round trip for a request and returns the parsed body. Must raise `ApiError` for
          failure statuses.
        @param cache
          Where fetched values are stored.
        @param registry
          Deduplicates network calls.
        @param error_bus
          Receives every `ApiError` raised by `send`.
        """
        self.__send = send
        self.__cache = cache
        self.__registry = registry
        self.__error_bus = error_bus
        self.__background: Set[asyncio.Future] = set()
        self.__stores: Dict[asyncio.Future, asyncio.Future] = {}

    @property
    def cache(self) -> Cache:
        return self.__cache

    def execute(self, request: RequestDescriptor, policy: Union[FetchPolicy, str],
                force_new_fetch: bool = False) -> asyncio.Future:
        """
        Start `request` under `policy`.

        Must be called while an event loop is running.

        @param request
          The request to perform.
        @param policy
          A `FetchPolicy`, or its string value such as "cache-first".
        @param force_new_fetch
          Make any network call independent of the one already in flight for the same request.
        @return
          A future for the value the policy resolves with.
        @throws ValueError
          If `policy` is not a known fetch policy.
        """
        policy = FetchPolicy(policy)
        execution = Execution(request=request, fingerprint=fingerprint(request), bypass=force_new_fetch)
        logger.info('Executing {} {} with policy {}'.format(request.method, request.url, policy.value))
        return STRATEGIES[policy].execute(self, execution)

    def is_in_flight(self, request: RequestDescriptor) -> bool:
        return self.__registry.is_in_flight(fingerprint(request))

    # region Building blocks for strategies

    def resolved(self, value: Any) -> asyncio.Future:
        result = asyncio.get_running_loop().create_future()
        result.set_result(value)
        return result

    def rejected(self, error: BaseException) -> asyncio.Future:
        result = asyncio.get_running_loop().create_future()
        result.set_exception(error)
        return result

    def fetch(self, execution: Execution) -> asyncio.Future:
        return self.__registry.dedupe(execution.fingerprint,
                                      lambda: self._network_fetch(execution.request),
                                      bypass=execution.bypass)

    def fetch_and_store(self, execution: Execution) -> asyncio.Future:
        # Each caller gets its own view, so cancelling it leaves the shared store running.
        return asyncio.shield(self._stored(execution.fingerprint, self.fetch(execution)))

    def refresh_in_background(self, execution: Execution) -> None:
        stored = self._stored(execution.fingerprint, self.fetch(execution))
        task = asyncio.ensure_future(self._refresh(execution.fingerprint, stored))
        self.__background.add(task)
        task.add_done_callback(self._background_done)

    # endregion

    async def join(self) -> None:
        """
        Wait until every background refresh started so far has finished.
        """
        while self.__background:
            await asyncio.wait(list(self.__background))

    async def _network_fetch(self, request: RequestDescriptor) -> Any:
        try:
            return await self.__send(request)
        except ApiError as e:
            logger.info('{} {} failed with status {}'.format(request.method, request.url, e.status_code))
            self.__error_bus.publish(e)
            raise

    def _stored(self, fingerprint: str, pending: asyncio.Future) -> asyncio.Future:
        """
        Write the outcome of `pending` to the cache once, however many callers share it.
        """
        stored = self.__stores.get(pending)
        if stored is None:
            stored = asyncio.ensure_future(self._store(fingerprint, pending))
            self.__stores[pending] = stored
            stored.add_done_callback(lambda _: self.__stores.pop(pending, None))
        else:
            logger.info('Sharing the cache write already waiting on the request for {}'.format(fingerprint))
        return stored

    async def _store(self, fingerprint: str, pending: asyncio.Future) -> Any:
        value = await asyncio.shield(pending)
        self.__cache.write(fingerprint, value)
        return value

    async def _refresh(self, fingerprint: str, stored: asyncio.Future) -> None:
        try:
            await asyncio.shield(stored)
        except ApiError:
            # Already published by the network fetch; the caller has its cached value.
            logger.info('Background refresh of {} failed'.format(fingerprint))

    def _background_done(self, task: asyncio.Future) -> None:
        self.__background.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error('Background refresh failed unexpectedly', exc_info=task.exception())
