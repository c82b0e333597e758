from enum import Enum
import json
from typing import Mapping, Optional
from urllib.parse import urlsplit

from requests.structures import CaseInsensitiveDict


class EnumJSONEncoder(json.JSONEncoder):
    def default(self, o):
        if isinstance(o, Enum):
            return o.value
        return super().default(o)


def canonical_headers(headers: Optional[Mapping[str, Optional[str]]]) -> Mapping[str, Optional[str]]:
    """
    Lower-case every header name.

    A missing header map is the same as an empty one. A header whose value is
    `None` is kept, since it removes a default header from the request.
    """
    if not headers:
        return {}
    return dict(CaseInsensitiveDict(headers).lower_items())


def apply_headers(previous: Mapping[str, str],
                  headers: Optional[Mapping[str, Optional[str]]]) -> CaseInsensitiveDict:
    """
    Merge `headers` over `previous` without mutating either.

    @param previous
      The headers to start from, e.g. the client's default headers.
    @param headers
      Headers to add or override. Names match case-insensitively. A `None`
      value removes the header.
    @return
      A new case-insensitive header map.
    """
    result = CaseInsensitiveDict(previous)
    for name, value in (headers or {}).items():
        if value is None:
            result.pop(name, None)
        else:
            result[name] = value
    return result


def join_url(base_url: Optional[str], url: str) -> str:
    if not base_url or urlsplit(url).scheme:
        return url
    return '{}/{}'.format(base_url.rstrip('/'), url.lstrip('/'))
