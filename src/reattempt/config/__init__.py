"""
Policy files: YAML loading, placeholder resolution and policy construction.
"""

from reattempt.config.loader import Config, load_config
from reattempt.config.policies import build_policy, load_policies
from reattempt.config.resolver import resolve_config

__all__ = [
    "Config",
    "load_config",
    "resolve_config",
    "build_policy",
    "load_policies",
]
