"""
Centralized configuration for rabbit-observation.

Uses Pydantic BaseSettings for environment variable integration
and validation.

Configuration sources (in order of precedence):
1. Explicit constructor arguments
2. Environment variables (RABBIT_OBSERVATION_*)
3. .env file
4. Default values

Example:
    from rabbit_observation.config import get_config, load_convention

    config = get_config()
    convention = load_convention(config.convention) if config.convention else None

    # export RABBIT_OBSERVATION_CONVENTION=myapp.telemetry:TenantConvention
"""

from __future__ import annotations

import importlib
import logging
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from rabbit_observation.convention import RabbitListenerObservationConvention

logger = logging.getLogger(__name__)


class ConventionResolutionError(ValueError):
    """A configured convention import path could not be resolved."""


class ObservationConfig(BaseSettings):
    """
    Settings for listener observation.

    All settings can be overridden via environment variables
    prefixed with RABBIT_OBSERVATION_.
    """

    model_config = SettingsConfigDict(
        env_prefix="RABBIT_OBSERVATION_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    enabled: bool = Field(
        default=True,
        description="Open spans and record metrics for received messages",
    )
    convention: Optional[str] = Field(
        default=None,
        description="Custom convention as 'package.module:Attribute' (default convention if unset)",
    )
    instrumentation_name: str = Field(
        default="rabbit_observation",
        description="Instrumentation scope name for the tracer and meter",
    )

    # Logging
    log_level: Literal["debug", "info", "warning", "error"] = Field(
        default="info",
        description="Logging level for rabbit-observation",
    )
    log_format: Literal["json", "text"] = Field(
        default="json",
        description="Log output format (json for aggregation, text for console)",
    )

    @field_validator("convention")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        """Treat an empty or whitespace-only path as unset."""
        if v is None:
            return None
        v = v.strip()
        return v or None


def load_convention(path: str) -> RabbitListenerObservationConvention:
    """
    Resolve a ``module:attribute`` path to a convention instance.

    The attribute may be a convention class (instantiated with no
    arguments) or an already built instance.

    Raises:
        ConventionResolutionError: If the path is malformed, cannot be
            imported, or does not name a convention.
    """
    module_name, sep, attr_name = path.partition(":")
    if not sep or not module_name or not attr_name:
        raise ConventionResolutionError(
            f"Convention path must look like 'package.module:Attribute', got {path!r}"
        )

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConventionResolutionError(
            f"Cannot import convention module {module_name!r}: {e}"
        ) from e

    target = module
    for part in attr_name.split("."):
        try:
            target = getattr(target, part)
        except AttributeError as e:
            raise ConventionResolutionError(
                f"{module_name!r} has no attribute {attr_name!r}"
            ) from e

    if isinstance(target, type) and issubclass(target, RabbitListenerObservationConvention):
        target = target()
    if not isinstance(target, RabbitListenerObservationConvention):
        raise ConventionResolutionError(
            f"{path!r} is not a RabbitListenerObservationConvention"
        )

    logger.info("Loaded listener observation convention: %s", path)
    return target


# Global singleton
_config: Optional[ObservationConfig] = None


def get_config(**overrides) -> ObservationConfig:
    """
    Get the global configuration instance.

    Creates a singleton on first call. Subsequent calls return
    the same instance unless overrides are provided.
    """
    global _config

    if overrides or _config is None:
        _config = ObservationConfig(**overrides)

    return _config


def reset_config() -> None:
    """Reset the global configuration (for testing)."""
    global _config
    _config = None
