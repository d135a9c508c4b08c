"""
Build policies from configuration mappings.

Supported definitions::

    {type: directly, max_retries: 3}
    {type: pause, delay: 1.5}                       # max_retries defaults to 5
    {type: backoff, delay: 0.5, multiplier: 3, max_delay: 10, forever: true}
    {type: jitter_backoff, delay: 0.1, jitter: {algorithm: equal, cap: 5, seed: 42}}
    {type: when, cases: [
        {failure: builtins.TimeoutError, policy: {type: pause, delay: 1}},
        {value: busy, policy: {type: directly, max_retries: 2}},
    ]}

Numbers may be given as strings so ${VAR} substitution works.
"""

from __future__ import annotations

import builtins
import importlib
from pathlib import Path
from typing import Any

from reattempt.config.loader import load_config
from reattempt.core.policy import DEFAULT_MAX_RETRIES, Backoff, Directly, JitterBackoff, Pause, Policy
from reattempt.core.when import FailurePattern, ValuePattern, When
from reattempt.exceptions import ConfigurationError
from reattempt.jitter import ALGORITHMS, Jitter, random_source

_COMMON_KEYS = {"type", "description"}
_ALLOWED_KEYS = {
    "directly": {"max_retries", "forever"},
    "pause": {"max_retries", "forever", "delay"},
    "backoff": {"max_retries", "forever", "delay", "multiplier", "max_delay"},
    "jitter_backoff": {"max_retries", "forever", "delay", "jitter"},
    "when": {"cases"},
}


def _number(definition: dict[str, Any], key: str, name: str, default: Any = None) -> Any:
    value = definition.get(key, default)
    if value is None:
        return None
    if isinstance(value, bool):
        raise ConfigurationError(f"Policy '{name}': {key} must be a number, got {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Policy '{name}': {key} must be a number, got {value!r}") from None


def _max_retries(definition: dict[str, Any], name: str) -> int | None:
    if _flag(definition.get("forever", False), "forever", name):
        if "max_retries" in definition:
            raise ConfigurationError(f"Policy '{name}': max_retries and forever are mutually exclusive")
        return None
    value = definition.get("max_retries", DEFAULT_MAX_RETRIES)
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ConfigurationError(f"Policy '{name}': max_retries must be an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Policy '{name}': max_retries must be an integer, got {value!r}") from None


def _flag(value: Any, key: str, name: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.lower() in ("true", "false", "yes", "no"):
        return value.lower() in ("true", "yes")
    raise ConfigurationError(f"Policy '{name}': {key} must be true or false, got {value!r}")


def _jitter(definition: Any, name: str) -> Jitter:
    if not isinstance(definition, dict):
        raise ConfigurationError(f"Policy '{name}': jitter must be a mapping with algorithm and cap")
    algorithm = definition.get("algorithm", "full")
    if algorithm not in ALGORITHMS:
        raise ConfigurationError(
            f"Policy '{name}': unknown jitter algorithm '{algorithm}'. " f"Available: {', '.join(sorted(ALGORITHMS))}"
        )
    cap = _number(definition, "cap", name)
    if cap is None:
        raise ConfigurationError(f"Policy '{name}': jitter requires a cap")
    if algorithm == "none":
        return Jitter.none(cap)
    seed = definition.get("seed")
    if seed is not None:
        try:
            seed = int(seed)
        except (TypeError, ValueError):
            raise ConfigurationError(f"Policy '{name}': jitter seed must be an integer, got {seed!r}") from None
    random = random_source(seed=seed) if seed is not None else None
    return ALGORITHMS[algorithm](cap, random)


def _exception_type(path: str, name: str) -> type[BaseException]:
    module_name, _, attr = path.rpartition(".")
    try:
        target = getattr(importlib.import_module(module_name), attr) if module_name else getattr(builtins, attr)
    except (ImportError, AttributeError):
        raise ConfigurationError(f"Policy '{name}': cannot import exception '{path}'") from None
    if not (isinstance(target, type) and issubclass(target, BaseException)):
        raise ConfigurationError(f"Policy '{name}': '{path}' is not an exception class")
    return target


def _cases(cases: Any, name: str) -> list:
    if not isinstance(cases, list) or not cases:
        raise ConfigurationError(f"Policy '{name}': when requires a non-empty list of cases")

    built = []
    for index, case in enumerate(cases):
        label = f"{name}.cases[{index}]"
        if not isinstance(case, dict) or "policy" not in case:
            raise ConfigurationError(f"Policy '{label}': each case needs a policy")
        if ("failure" in case) == ("value" in case):
            raise ConfigurationError(f"Policy '{label}': each case needs exactly one of failure or value")

        if "failure" in case:
            names = case["failure"] if isinstance(case["failure"], list) else [case["failure"]]
            pattern: Any = FailurePattern(tuple(_exception_type(str(n), label) for n in names))
        else:
            pattern = ValuePattern(case["value"])
        built.append((pattern, build_policy(case["policy"], name=label)))
    return built


def build_policy(definition: dict[str, Any], name: str = "<inline>") -> Policy:
    """
    Build a Policy from a configuration mapping.

    Args:
        definition: Policy definition (see module docstring)
        name: Policy name used in error messages

    Returns:
        Policy instance

    Raises:
        ConfigurationError: If the definition is incomplete or invalid
    """
    if not isinstance(definition, dict):
        raise ConfigurationError(f"Policy '{name}' must be a mapping, got {type(definition).__name__}")

    kind = str(definition.get("type", "")).replace("-", "_").lower()
    if kind not in _ALLOWED_KEYS:
        raise ConfigurationError(
            f"Policy '{name}': unknown type '{definition.get('type')}'. " f"Available: {', '.join(_ALLOWED_KEYS)}"
        )

    unknown = set(definition) - _ALLOWED_KEYS[kind] - _COMMON_KEYS
    if unknown:
        raise ConfigurationError(f"Policy '{name}': unsupported keys for {kind}: {', '.join(sorted(unknown))}")

    try:
        if kind == "when":
            return When(_cases(definition.get("cases"), name))

        max_retries = _max_retries(definition, name)
        if kind == "directly":
            return Directly(max_retries)

        delay = _number(definition, "delay", name)
        if kind == "pause":
            return Pause(max_retries, delay)
        if kind == "backoff":
            return Backoff(
                max_retries,
                delay,
                multiplier=_number(definition, "multiplier", name, 2.0),
                max_delay=_number(definition, "max_delay", name),
            )
        return JitterBackoff(max_retries, delay, jitter=_jitter(definition.get("jitter"), name))
    except ConfigurationError as e:
        if e.message.startswith("Policy '"):
            raise
        raise ConfigurationError(f"Policy '{name}': {e.message}", details={"policy": name}) from e


def load_policies(path: str | Path, env: str | None = None) -> dict[str, Policy]:
    """
    Load every policy defined in a policy file.

    Args:
        path: Path to the YAML file
        env: Optional environment overlay name

    Returns:
        Mapping of policy name to Policy, in file order
    """
    config = load_config(path, env=env)
    return {name: build_policy(definition, name=name) for name, definition in config.policies.items()}
