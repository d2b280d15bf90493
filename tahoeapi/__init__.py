"""Tahoe-LAFS WebAPI Python 客户端 - https://tahoe-lafs.org"""

from tahoeapi.client import TahoeClient
from tahoeapi.exceptions import (
    AlreadyExistsError,
    InvalidArgumentError,
    NotFoundError,
    ReadOnlyError,
    TahoeError,
    TypeMismatchError,
)
from tahoeapi.objects import Directory, File, GridObject, from_json

__all__ = [
    "TahoeClient",
    "GridObject",
    "File",
    "Directory",
    "from_json",
    "TahoeError",
    "NotFoundError",
    "ReadOnlyError",
    "AlreadyExistsError",
    "InvalidArgumentError",
    "TypeMismatchError",
]
