"""Timeout configuration for release requests."""

import math
import os
from typing import ClassVar

from pydantic import BaseModel, Field

from release_publisher.core.exceptions import ConfigurationError


class HttpTimeouts(BaseModel):
    """
    The three independent timeout phases of a request attempt, in seconds.

    Environment variables (read by ``from_env``):
    - RELEASE_CONNECT_TIMEOUT: Connection and TLS handshake bound
    - RELEASE_FIRST_BYTE_TIMEOUT: Wait for the response after the request is sent
    - RELEASE_END_TO_END_TIMEOUT: Whole exchange, including body transfer
    """

    connect_timeout: float = Field(default=10.0, gt=0)
    first_byte_timeout: float = Field(default=30.0, gt=0)
    end_to_end_timeout: float = Field(default=300.0, gt=0)

    model_config = {"frozen": True}

    ENV_VARS: ClassVar[dict[str, str]] = {
        "connect_timeout": "RELEASE_CONNECT_TIMEOUT",
        "first_byte_timeout": "RELEASE_FIRST_BYTE_TIMEOUT",
        "end_to_end_timeout": "RELEASE_END_TO_END_TIMEOUT",
    }

    @classmethod
    def from_env(cls) -> "HttpTimeouts":
        """Load timeouts from environment, keeping defaults for unset values."""
        values: dict[str, float] = {}
        for name, env_var in cls.ENV_VARS.items():
            raw = os.getenv(env_var)
            if raw is None or not raw.strip():
                continue
            try:
                value = float(raw)
            except ValueError:
                raise ConfigurationError(
                    f"{env_var} must be a number of seconds, got {raw!r}",
                    config_key=env_var,
                )
            if not math.isfinite(value) or value <= 0:
                raise ConfigurationError(
                    f"{env_var} must be a positive finite number, got {value}",
                    config_key=env_var,
                )
            values[name] = value
        return cls(**values)

    def with_overrides(
        self,
        *,
        connect_timeout: float | None = None,
        first_byte_timeout: float | None = None,
        end_to_end_timeout: float | None = None,
    ) -> "HttpTimeouts":
        """Return a copy with any given durations replaced."""
        overrides = {
            "connect_timeout": connect_timeout,
            "first_byte_timeout": first_byte_timeout,
            "end_to_end_timeout": end_to_end_timeout,
        }
        return HttpTimeouts(**{**self.model_dump(), **{k: v for k, v in overrides.items() if v is not None}})
