#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Type hints used internally by this package.
"""

from __future__ import annotations

from typing import (
    Dict, List, Optional, Union, Any, Tuple, Set, Type, Callable, Awaitable,
    Iterable, Mapping, MutableMapping, Sequence, AsyncContextManager,
    TYPE_CHECKING,
  )
from types import TracebackType
from typing_extensions import Self, Protocol

JsonableTypes = ( str, int, float, bool, dict, list )
# A tuple of types to use for isinstance checking of JSON-serializable types. Excludes None. Useful for isinstance.

Jsonable = Union[str, int, float, bool, None, Dict[str, Any], List[Any]]
"""A Type hint for a simple JSON-serializable value; i.e., str, int, float, bool, None, Dict[str, Jsonable], List[Jsonable]"""

JsonableDict = Dict[str, Jsonable]
"""A type hint for a simple JSON-serializable dict; i.e., Dict[str, Jsonable]"""

HostAndPort = Tuple[str, int]
"""A type hint for a (host, port) socket address as returned by asyncio datagram callbacks"""

StreamValue = Union[int, float, None]
"""A scalar value forwarded onto a named stream. None means the field was absent."""
