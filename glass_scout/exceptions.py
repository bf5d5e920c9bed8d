#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Exceptions defined by this package"""

from __future__ import annotations

from typing import Optional

class GlassScoutError(Exception):
    """Base class for all error exceptions defined by this package."""
    pass

class GlassScoutBindError(GlassScoutError):
    """The scout could not bind its UDP socket (port in use, permission denied, etc)."""

    port: int
    bind_address: str

    def __init__(self, port: int, bind_address: str, cause: Optional[BaseException]=None):
        msg = f"Unable to bind UDP socket to {bind_address}:{port}"
        if not cause is None:
            msg += f": {cause}"
        super().__init__(msg)
        self.port = port
        self.bind_address = bind_address

class GlassScoutConfigError(GlassScoutError):
    """A configuration value was missing or invalid."""
    pass
