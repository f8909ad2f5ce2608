"""
Promofire SDK - Async-first SDK for the Promofire promo-code service.

This SDK provides:
- Async client whose calls wait transparently for session configuration
- Synchronous wrapper for sync operations
- Multiple HTTP transport support
- Session token persistence
- Middleware support
"""

from .barrier import ConfigurationBarrier
from .barrier import ReadinessState
from .client import PromofireClient
from .client_sync import PromofireClientSync
from .config import PromofireSettings
from .device import SDK_VERSION
from .exceptions import BackendError
from .exceptions import DecodingError
from .exceptions import NotConfiguredError
from .exceptions import PromofireError
from .exceptions import TransportError
from .exceptions import UnknownError
from .logging_middleware import LoggingMiddleware
from .middleware import Middleware
from .models import Code
from .models import CodeRedeems
from .models import Codes
from .models import CodeTemplate
from .models import CodeTemplates
from .models import CreateCodesRequest
from .models import Customer
from .models import UpdateCustomerSelf
from .models import UserInfo
from .token_store import FileTokenStore
from .token_store import MemoryTokenStore
from .token_store import TokenStore

__version__ = SDK_VERSION

__all__ = [
    "PromofireClient",
    "PromofireClientSync",
    "PromofireSettings",
    "ConfigurationBarrier",
    "ReadinessState",
    "PromofireError",
    "NotConfiguredError",
    "TransportError",
    "DecodingError",
    "BackendError",
    "UnknownError",
    "Middleware",
    "LoggingMiddleware",
    "UserInfo",
    "Code",
    "Codes",
    "CodeRedeems",
    "CodeTemplate",
    "CodeTemplates",
    "CreateCodesRequest",
    "Customer",
    "UpdateCustomerSelf",
    "TokenStore",
    "FileTokenStore",
    "MemoryTokenStore",
]
