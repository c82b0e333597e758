from typing import Any

from .model import ResponseType


class ApiClientError(Exception):
    """
    Base class of the errors produced by the client itself.
    """


class ApiError(ApiClientError):
    """
    A request completed, but the server answered with a failure status (400 or above).
    """

    def __init__(self, status_code: int, parsed_body: Any = None, parse_kind: ResponseType = ResponseType.JSON) -> None:
        super().__init__('Request failed with status {}'.format(status_code))
        self.__status_code = status_code
        self.__parsed_body = parsed_body
        self.__parse_kind = parse_kind

    @property
    def status_code(self) -> int:
        return self.__status_code

    @property
    def parsed_body(self) -> Any:
        return self.__parsed_body

    @property
    def parse_kind(self) -> ResponseType:
        return self.__parse_kind

    def __repr__(self) -> str:
        return 'ApiError({!r}, {!r}, {!r})'.format(self.__status_code, self.__parsed_body, self.__parse_kind.value)


class ApiCacheMissError(ApiClientError):
    """
    A cache-only request found nothing in the cache.
    """

    def __init__(self) -> None:
        super().__init__('No cached response for the request')
