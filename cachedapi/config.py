from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional

from .policy import FetchPolicy
from .transport import Timeout


@dataclass
class ApiConfig:
    """
    Settings for an `Api` client.
    """

    base_url: Optional[str] = None
    """
    Prefixed to every relative request URL. E.g., "http://example.com/api".
    """

    default_headers: Mapping[str, str] = field(default_factory=dict)
    """
    Headers sent with every request unless the request overrides them.
    """

    default_fetch_policy: FetchPolicy = FetchPolicy.NO_CACHE
    """
    The fetch policy of requests that do not name one.
    """

    parse_response_json: Optional[Callable[[Any], Any]] = None
    """
    Applied to every decoded JSON response body, including error bodies.
    """

    serialize_request_json: Optional[Callable[[Any], Any]] = None
    """
    Applied to every JSON request body before it is encoded.
    """

    timeout: Timeout = None
    """
    Network timeout in seconds for the default transport.
    """

    def __post_init__(self) -> None:
        self.default_fetch_policy = FetchPolicy(self.default_fetch_policy)
