#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Configuration support.

A ScoutConfig starts from built-in defaults and is then updated, in order, from
an optional JSON config file, from GLASS_SCOUT_* environment variables, and from
explicit overrides (typically command-line flags).
"""

from __future__ import annotations

import os
import json

from .internal_types import *
from .exceptions import GlassScoutConfigError
from .constants import GLASS_PORT, DEFAULT_BIND_ADDRESS, DEFAULT_SEND_INTERVAL

ENV_PREFIX = "GLASS_SCOUT_"

LOG_LEVELS = ( 'debug', 'info', 'warning', 'error', 'critical' )

class ScoutConfig:
    port: int = GLASS_PORT
    bind_address: str = DEFAULT_BIND_ADDRESS
    log_level: str = 'warning'
    send_interval: float = DEFAULT_SEND_INTERVAL

    config_file: Optional[str] = None
    """The fully qualified pathname of the configuration file that was loaded, if any"""

    _keys = ( 'port', 'bind_address', 'log_level', 'send_interval' )

    def __init__(self, **kwargs: Any):
        self.update(kwargs)

    def update(self, values: Mapping[str, Any]) -> None:
        """Applies a set of settings. None values are ignored; unknown keys raise GlassScoutConfigError."""
        for key, value in values.items():
            if not key in self._keys:
                raise GlassScoutConfigError(f"Unknown configuration setting '{key}'")
            if value is None:
                continue
            setattr(self, key, self._coerce(key, value))

    def _coerce(self, key: str, value: Any) -> Any:
        try:
            if key == 'port':
                port = int(value)
                if port < 0 or port > 65535:
                    raise ValueError(f"port out of range: {port}")
                return port
            if key == 'send_interval':
                interval = float(value)
                if interval < 0.0:
                    raise ValueError(f"negative interval: {interval}")
                return interval
            if key == 'log_level':
                level = str(value).lower()
                if not level in LOG_LEVELS:
                    raise ValueError(f"must be one of {', '.join(LOG_LEVELS)}")
                return level
            return str(value)
        except (TypeError, ValueError) as e:
            raise GlassScoutConfigError(f"Invalid value for '{key}': {value!r} ({e})") from e

    def load_json_data(self, json_data: JsonableDict) -> None:
        if not isinstance(json_data, dict):
            raise GlassScoutConfigError("Configuration must be a JSON object")
        self.update(json_data)

    def loads(self, config_text: str) -> None:
        try:
            json_data = json.loads(config_text)
        except ValueError as e:
            raise GlassScoutConfigError(f"Configuration is not valid JSON: {e}") from e
        self.load_json_data(json_data)

    def load_file(self, pathname: str) -> None:
        pathname = os.path.abspath(os.path.expanduser(pathname))
        try:
            with open(pathname, encoding='utf-8') as f:
                config_text = f.read()
        except OSError as e:
            raise GlassScoutConfigError(f"Unable to read config file {pathname}: {e}") from e
        self.loads(config_text)
        self.config_file = pathname

    def load_environ(self, os_environ: Optional[Mapping[str, str]]=None) -> None:
        if os_environ is None:
            os_environ = os.environ
        values: Dict[str, Any] = {}
        for key in self._keys:
            env_value = os_environ.get(ENV_PREFIX + key.upper())
            if not env_value is None and env_value != '':
                values[key] = env_value
        self.update(values)

    def as_json_data(self) -> JsonableDict:
        return { key: getattr(self, key) for key in self._keys }

    @classmethod
    def load(
            cls,
            config_file: Optional[str]=None,
            os_environ: Optional[Mapping[str, str]]=None,
            overrides: Optional[Mapping[str, Any]]=None,
          ) -> ScoutConfig:
        cfg = cls()
        if not config_file is None:
            cfg.load_file(config_file)
        cfg.load_environ(os_environ)
        if not overrides is None:
            cfg.update(overrides)
        return cfg

    def __str__(self) -> str:
        return f"ScoutConfig({self.as_json_data()})"

    def __repr__(self) -> str:
        return str(self)
