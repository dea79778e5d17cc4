"""Dual-protocol (AICF compact + JSON-RPC 2.0) tool dispatch core."""

from .aicf.models import UNDEFINED
from .dispatcher import Dispatcher, ServerInfo, map_arguments
from .errors import ErrorKind, RpcAppError
from .models import CanonicalRequest, CanonicalResponse, Failure, Operation, Success
from .server import RpcServer
from .session import Session, SessionStore
from .tools.base import ArgSpec, ContextDescriptor, ToolDescriptor
from .tools.registry import ContextRegistry, ToolRegistry

__version__ = "0.1.0"

__all__ = [
    "RpcServer",
    "Dispatcher",
    "ServerInfo",
    "map_arguments",
    "CanonicalRequest",
    "CanonicalResponse",
    "Success",
    "Failure",
    "Operation",
    "ErrorKind",
    "RpcAppError",
    "Session",
    "SessionStore",
    "ArgSpec",
    "ToolDescriptor",
    "ContextDescriptor",
    "ToolRegistry",
    "ContextRegistry",
    "UNDEFINED",
]
