"""
Defines types to use in the request interface.

These types are as simple as possible in order to most conveniently consume and
produce instances of them.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional, Union


class ResponseType(Enum):
    """
    How a response body is interpreted.
    """
    TEXT = 'text'
    JSON = 'json'
    BLOB = 'blob'


@dataclass
class RequestDescriptor:
    """
    Describes a request issued through the client.

    Only the method, url, headers and response type identify a request. The
    body is sent over the wire but never affects deduplication or caching.
    """

    method: str
    """
    The HTTP method of the request. E.g., "GET".
    """

    url: str
    """
    The resource being requested, either absolute or relative to the base URL.
    """

    headers: Optional[Mapping[str, Optional[str]]] = None
    """
    Headers sent with this request in addition to the client's default headers.
    """

    response_type: Optional[ResponseType] = None
    """
    Forces the response body to be parsed as this type instead of using its
    content type.
    """

    body: Any = field(default=None, compare=False)
    """
    The request payload. Mappings and lists are serialized as JSON.
    """

    def __post_init__(self) -> None:
        if isinstance(self.response_type, str):
            self.response_type = ResponseType(self.response_type)


@dataclass
class PreparedRequest:
    """
    A request as it is handed to the transport: URL resolved, default headers
    applied, and body serialized.
    """
    method: str
    url: str
    headers: Mapping[str, str]
    body: Optional[Union[str, bytes]] = None


@dataclass
class RawResponse:
    """
    Represents an arbitrary response, without any bells and whistles.

    We deliberately do not use `requests.Response`; we just want a type that
    does what we need, and nothing more.
    """

    status: int
    """
    The status code of the response. E.g., 200 or 400.
    """

    reason: str
    """
    The reason string, which relates to the status code.
    """

    headers: Mapping[str, str]
    """
    All the headers sent with the response. Lookups should be case-insensitive.
    """

    body: bytes = field(default=b'', compare=False)
    """
    The response payload.
    """

    @property
    def ok(self) -> bool:
        return self.status < 400


@dataclass
class Blob:
    """
    A binary response body together with its content type.
    """
    content_type: str
    data: bytes


@dataclass
class CacheEntry:
    """
    A cache entry.

    The value is whatever the response parser produced for the request. It is
    opaque to the cache, and may even be `None` for a JSON `null` body.
    """
    fingerprint: str
    value: Any
