from abc import ABC, abstractmethod
import asyncio
from concurrent.futures import Executor
from functools import partial
import logging
from typing import Optional, Tuple, Union

import requests
from requests.structures import CaseInsensitiveDict

from .model import PreparedRequest, RawResponse


logger = logging.getLogger(__name__)

Timeout = Union[None, float, Tuple[float, float]]


class Transport(ABC):
    """
    Performs a single network round trip.

    A transport knows nothing about caching or deduplication, and does not judge status codes. Failure statuses are
    returned like any other response.
    """

    @abstractmethod
    async def send(self, request: PreparedRequest) -> RawResponse:
        """
        Send `request` and read the complete response.
        """

    def close(self):
        """
        Close any resources associated with the transport.
        """


class RequestsTransport(Transport):
    """
    Sends requests through a `requests.Session`.

    `requests` blocks, so each call runs in an executor. Only the blocking call leaves the event loop's thread; the
    response is converted back on the loop.
    """

    def __init__(self, session: Optional[requests.Session] = None, timeout: Timeout = None,
                 executor: Optional[Executor] = None) -> None:
        """
        @param session
          The session to send requests with. A new one is created, and owned, if not given.
        @param timeout
          Passed through to `requests`. `None` waits forever.
        @param executor
          Where the blocking calls run. Defaults to the event loop's default executor.
        """
        self.__owns_session = session is None
        self.__session = requests.Session() if session is None else session
        self.__timeout = timeout
        self.__executor = executor

    async def send(self, request: PreparedRequest) -> RawResponse:
        logger.info('Sending {} {}'.format(request.method, request.url))
        call = partial(self.__session.request,
                       request.method,
                       request.url,
                       headers=dict(request.headers),
                       data=request.body,
                       timeout=self.__timeout)
        requests_response = await asyncio.get_running_loop().run_in_executor(self.__executor, call)
        logger.info('Received {} {} for {} {}'.format(requests_response.status_code, requests_response.reason,
                                                     request.method, request.url))
        return RawResponse(status=requests_response.status_code,
                           reason=requests_response.reason,
                           headers=CaseInsensitiveDict(requests_response.headers),
                           body=requests_response.content)

    def close(self):
        if self.__owns_session:
            self.__session.close()
