"""
Fetch configuration.

FetchOptions carries every knob of the network path. Defaults are safe for
untrusted URLs: private addresses blocked, TLS verified, 10 MiB body cap.
from_env() lets deployments override them through WEBPAGE_INFO_* variables
(the run_* scripts load a .env file first).
"""

import os
from typing import Mapping, Optional

from pydantic import BaseModel, Field

from .limits import DEFAULT_MAX_BODY_SIZE

DEFAULT_TIMEOUT = 30.0
DEFAULT_MAX_REDIRECTS = 10
DEFAULT_USER_AGENT = "webpage-info/1.0 (+https://pypi.org/project/webpage-info/)"

ENV_PREFIX = "WEBPAGE_INFO_"

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in _TRUE_VALUES


class FetchOptions(BaseModel):
    """Options for one fetch."""
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0)             # Seconds, covers connect + redirects + body
    max_body_size: int = Field(default=DEFAULT_MAX_BODY_SIZE, gt=0)   # Bytes of decoded body
    user_agent: str = DEFAULT_USER_AGENT
    max_redirects: int = Field(default=DEFAULT_MAX_REDIRECTS, ge=0)   # 0 = any 3xx raises TooManyRedirectsError
    block_private_ips: bool = True
    # Accept invalid TLS certificates. Only for known self-signed hosts;
    # this opens the door to man-in-the-middle attacks.
    allow_insecure: bool = False
    headers: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "FetchOptions":
        """Build options from WEBPAGE_INFO_* environment variables, defaulting the rest."""
        env = os.environ if environ is None else environ
        values = {
            "block_private_ips": _env_bool(env, f"{ENV_PREFIX}BLOCK_PRIVATE_IPS", True),
            "allow_insecure": _env_bool(env, f"{ENV_PREFIX}ALLOW_INSECURE", False),
        }

        if env.get(f"{ENV_PREFIX}TIMEOUT"):
            values["timeout"] = float(env[f"{ENV_PREFIX}TIMEOUT"])
        if env.get(f"{ENV_PREFIX}MAX_BODY_SIZE"):
            values["max_body_size"] = int(env[f"{ENV_PREFIX}MAX_BODY_SIZE"])
        if env.get(f"{ENV_PREFIX}USER_AGENT"):
            values["user_agent"] = env[f"{ENV_PREFIX}USER_AGENT"]
        if env.get(f"{ENV_PREFIX}MAX_REDIRECTS"):
            values["max_redirects"] = int(env[f"{ENV_PREFIX}MAX_REDIRECTS"])

        return cls(**values)
