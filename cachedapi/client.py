import asyncio
import json
import logging
from typing import Any, Callable, Mapping, Optional, Union

from requests.structures import CaseInsensitiveDict

from .cache import Cache, MemoryCache
from .config import ApiConfig
from .errors import ApiError
from .events import ErrorBus, Unsubscribe
from .fingerprint import fingerprint
from .inflight import InFlightRegistry
from .model import PreparedRequest, RequestDescriptor
from .parsing import parse_response
from .policy import FetchPolicy, FetchPolicyEngine
from .transport import RequestsTransport, Transport
from .util import apply_headers, join_url


logger = logging.getLogger(__name__)


class Api:
    """
    An HTTP client that deduplicates identical requests, caches responses and reports errors centrally.

    All state (cache, requests in flight, listeners) belongs to the instance. Requests must be made from within a
    running event loop.
    """

    idempotent_methods = {'GET', 'HEAD', 'OPTIONS'}

    def __init__(self, config: Optional[ApiConfig] = None, transport: Optional[Transport] = None,
                 cache: Optional[Cache] = None) -> None:
        self.__config = ApiConfig() if config is None else config
        self.__transport = RequestsTransport(timeout=self.__config.timeout) if transport is None else transport
        self.__default_headers = CaseInsensitiveDict(self.__config.default_headers)
        self.__cache = MemoryCache() if cache is None else cache
        self.__error_bus = ErrorBus()
        self.__engine = FetchPolicyEngine(self._send, self.__cache, InFlightRegistry(), self.__error_bus)

    @property
    def default_headers(self) -> Mapping[str, str]:
        return CaseInsensitiveDict(self.__default_headers)

    def set_default_header(self, name: str, value: str) -> None:
        self.__default_headers[name] = value

    def remove_default_header(self, name: str) -> None:
        self.__default_headers.pop(name, None)

    def build_url(self, url: str) -> str:
        return join_url(self.__config.base_url, url)

    def request(self, request: RequestDescriptor, fetch_policy: Union[FetchPolicy, str, None] = None,
                force_new_fetch: bool = False) -> asyncio.Future:
        """
        Perform `request`.

        Requests with an idempotent method that are made while an identical request is in flight share its network
        call, and receive the very same future when neither caches. Other methods always get their own network call.

        Under the "no-cache" policy that shared future is the network call itself, so cancelling it cancels the call
        for every caller sharing it. Under every other policy each caller gets its own future, and cancelling it
        leaves the network call and its cache write running.

        @param request
          The request to perform.
        @param fetch_policy
          How to use the cache. Defaults to the configured default fetch policy.
        @param force_new_fetch
          Do not share a network call with an identical request already in flight.
        @return
          A future for the parsed response body. It fails with `ApiError` if the server answers with a failure
          status, or with `ApiCacheMissError` if a cache-only request finds nothing cached.
        """
        if fetch_policy is None:
            fetch_policy = self.__config.default_fetch_policy
        if request.method.upper() not in self.idempotent_methods:
            force_new_fetch = True
        return self.__engine.execute(request, fetch_policy, force_new_fetch=force_new_fetch)

    def request_in_progress(self, request: RequestDescriptor) -> bool:
        return self.__engine.is_in_flight(request)

    def read_cached_response(self, request: RequestDescriptor) -> Any:
        entry = self.__cache.read(fingerprint(request))
        return None if entry is None else entry.value

    def write_cached_response(self, request: RequestDescriptor, value: Any) -> None:
        self.__cache.write(fingerprint(request), value)

    def on_cache_update(self, request: RequestDescriptor, callback: Callable[[Any], None]) -> Unsubscribe:
        return self.__cache.subscribe(fingerprint(request), callback)

    def on_error(self, callback: Callable[[ApiError], None]) -> Unsubscribe:
        return self.__error_bus.subscribe(callback)

    async def join(self) -> None:
        """
        Wait for background cache refreshes to finish.
        """
        await self.__engine.join()

    def close(self):
        self.__transport.close()
        self.__cache.close()
        self.__error_bus.close()

    def prepare(self, request: RequestDescriptor) -> PreparedRequest:
        headers = apply_headers(self.__default_headers, request.headers)
        body = request.body
        if isinstance(body, (Mapping, list)):
            if self.__config.serialize_request_json is not None:
                body = self.__config.serialize_request_json(body)
            body = json.dumps(body)
            headers.setdefault('Content-Type', 'application/json')
        return PreparedRequest(method=request.method.upper(),
                               url=self.build_url(request.url),
                               headers=headers,
                               body=body)

    async def _send(self, request: RequestDescriptor) -> Any:
        response = await self.__transport.send(self.prepare(request))
        parsed = parse_response(response, request.response_type, self.__config.parse_response_json)
        if not response.ok:
            raise ApiError(response.status, parsed.value, parsed.kind)
        return parsed.value


def create(base_url: Optional[str] = None, **kw) -> Api:
    return Api(ApiConfig(base_url=base_url, **kw))
