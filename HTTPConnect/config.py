""" Client option bag with defaults, validation and environment/JSON loading """

import os, json
import logging
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Mapping, Optional

logger = logging.getLogger(__name__)

ENV_PREFIX = "HTTPCONNECT_"

_INT_OPTIONS = ('connection_timeout', 'timeout', 'max_redirects')
_BOOL_OPTIONS = ('follow_redirects', 'ssl_verify_peer', 'decode_content', 'use_cookies')


@dataclass(frozen=True)
class ClientConfig:
    """Options recognised by the client and its transport.

    - connection_timeout : int - connection timeout in seconds (0 disables)
    - timeout : int - overall wall-clock budget in seconds (0 disables)
    - follow_redirects : bool - follow 3xx responses automatically
    - max_redirects : int - maximum redirects followed per call
    - ssl_verify_peer : bool - verify the peer certificate over TLS
    - decode_content : bool - let the transport decode gzip/deflate bodies
    - use_cookies : bool - compute Cookie headers from prior responses
    - transport_options : dict - raw transport options merged verbatim
    """
    connection_timeout: int = 3
    timeout: int = 10
    follow_redirects: bool = True
    max_redirects: int = 10
    ssl_verify_peer: bool = True
    decode_content: bool = True
    use_cookies: bool = True
    transport_options: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """Validate option types and ranges."""
        for name in _INT_OPTIONS:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"Option '{name}' must be an integer, got {value!r}")
            if value < 0:
                raise ValueError(f"Option '{name}' must be >= 0, got {value}")
        for name in _BOOL_OPTIONS:
            value = getattr(self, name)
            if not isinstance(value, bool):
                raise ValueError(f"Option '{name}' must be a boolean, got {value!r}")
        if not isinstance(self.transport_options, Mapping):
            raise ValueError("Option 'transport_options' must be a mapping")
        object.__setattr__(self, 'transport_options', dict(self.transport_options))

    @classmethod
    def option_names(cls):
        return [f.name for f in fields(cls)]

    @classmethod
    def from_options(cls, options: Optional[Mapping[str, Any]] = None) -> 'ClientConfig':
        """Build a config from a mapping, ignoring keys that are not options."""
        options = dict(options or {})
        known = set(cls.option_names())
        for key in sorted(set(options) - known):
            logger.debug(f"Ignoring unknown client option '{key}'")
        return cls(**{key: value for key, value in options.items() if key in known})

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None,
                 prefix: str = ENV_PREFIX, **overrides) -> 'ClientConfig':
        """Load options from ``HTTPCONNECT_<OPTION>`` variables, then apply overrides."""
        environ = os.environ if environ is None else environ
        options: Dict[str, Any] = {}
        for name in _INT_OPTIONS + _BOOL_OPTIONS:
            env_value = environ.get(prefix + name.upper())
            if env_value is not None:
                options[name] = _convert_env_value(prefix + name.upper(), name, env_value)
        options.update(overrides)
        return cls.from_options(options)

    @classmethod
    def from_file(cls, path: str) -> 'ClientConfig':
        """Load options from a JSON file holding a single object."""
        try:
            with open(path, 'r') as f: raw = json.load(f)
        except FileNotFoundError:
            raise FileNotFoundError(f"Client configuration file not found at {path}")
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in client configuration file: {e}")
        if not isinstance(raw, dict):
            raise ValueError(f"Client configuration in {path} must be a JSON object")
        return cls.from_options(raw)

    def merged(self, **options) -> 'ClientConfig':
        """Return a copy with the given options replaced."""
        current = {f.name: getattr(self, f.name) for f in fields(self)}
        current.update(options)
        return self.from_options(current)


def _convert_env_value(env_var: str, name: str, value: str):
    """Convert an environment variable string to the option's type."""
    if name in _BOOL_OPTIONS:
        lowered = value.strip().lower()
        if lowered in ('1', 'true', 'yes', 'on'):
            return True
        if lowered in ('0', 'false', 'no', 'off'):
            return False
        raise ValueError(f"Invalid boolean for {env_var}: {value!r}")
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Invalid integer for {env_var}: {value!r}")
