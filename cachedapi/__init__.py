from .client import Api, create
from .config import ApiConfig
from .errors import ApiCacheMissError, ApiClientError, ApiError
from .fingerprint import fingerprint
from .model import Blob, RequestDescriptor, ResponseType
from .policy import FetchPolicy
