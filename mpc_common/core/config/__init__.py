"""Configuration package for mpc_common.

Pydantic configuration models and loading utilities, re-exported at the
package level.
"""

from mpc_common.core.config.loader import (
    check_unexpanded_vars,
    expand_env_vars,
    expand_env_vars_recursive,
    load_config,
    merge_configs,
)
from mpc_common.core.config.models import ChannelConfig, Config, LoggingConfig

__all__ = [
    # Models
    "ChannelConfig",
    "Config",
    "LoggingConfig",
    # Loaders
    "check_unexpanded_vars",
    "expand_env_vars",
    "expand_env_vars_recursive",
    "load_config",
    "merge_configs",
]
