"""
Derives the identity key that deduplication and caching are keyed by.
"""

import json
from typing import Optional

from .model import RequestDescriptor
from .util import EnumJSONEncoder, canonical_headers


def fingerprint(request: Optional[RequestDescriptor]) -> Optional[str]:
    """
    Compute a stable key for `request`.

    Requests that differ only in header name casing, header order, or in having
    no headers versus an empty header map get the same key. The body does not
    take part.

    @param request
      The request to identify. May be `None`.
    @return
      The key, or `None` if `request` is `None`.
    """
    if request is None:
        return None

    canonical = {
        'method': request.method.upper(),
        'url': request.url,
        'responseType': request.response_type,
        'headers': canonical_headers(request.headers),
    }
    return json.dumps(canonical, cls=EnumJSONEncoder, sort_keys=True, separators=(',', ':'))
