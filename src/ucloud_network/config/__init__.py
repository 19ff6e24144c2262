"""Configuration management for UCloud network resources."""

from .models import (
    DEFAULT_TAG,
    ProviderConfig,
    WaitConfig,
    VPCConfig,
    VPCState,
    NetworkInfo,
    SubnetConfig,
    SubnetState,
)
from .parser import ConfigValidationError, load_provider_config

__all__ = [
    "DEFAULT_TAG",
    "ProviderConfig",
    "WaitConfig",
    "VPCConfig",
    "VPCState",
    "NetworkInfo",
    "SubnetConfig",
    "SubnetState",
    "ConfigValidationError",
    "load_provider_config",
]
