"""Static file serving middleware with conditional and range request support."""

from .asgi import StaticFilesApp
from .config import DotfilesPolicy, StaticConfig
from .exceptions import (
    BadRequestError,
    ForbiddenError,
    HTTPError,
    InternalIOError,
    MethodNotAllowedError,
    NotFoundError,
    PreconditionFailedError,
    RangeNotSatisfiableError,
    ServeStaticError,
)
from .execution import ExecutionConfig, TaskExecutor
from .filesystem import FileStat, FileStream, FileSystem, LocalFileSystem
from .middleware import apply_middleware
from .requests import Request
from .responses import Response
from .static import ServeStatic, content_type_for, serve_static
from .testing import TestClient

__all__ = [
    "BadRequestError",
    "DotfilesPolicy",
    "ExecutionConfig",
    "FileStat",
    "FileStream",
    "FileSystem",
    "ForbiddenError",
    "HTTPError",
    "InternalIOError",
    "LocalFileSystem",
    "MethodNotAllowedError",
    "NotFoundError",
    "PreconditionFailedError",
    "RangeNotSatisfiableError",
    "Request",
    "Response",
    "ServeStatic",
    "ServeStaticError",
    "StaticConfig",
    "StaticFilesApp",
    "TaskExecutor",
    "TestClient",
    "apply_middleware",
    "content_type_for",
    "serve_static",
]
