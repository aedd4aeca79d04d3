"""
Policy loader (``succession_config.loader``).

Responsibility
--------------
Loads a succession policy YAML file and parses it into a frozen
``SuccessionPolicy``. Unknown keys are rejected so that a typo in a
policy file never silently falls back to a default.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown keys, wrong types or out-of-range values -> ``PolicyConfigError``.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import fields
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from succession_config.schema import OverpaymentPolicy, RiskWeights, SuccessionPolicy
from succession_kernel.exceptions import PolicyConfigError

_DECIMAL_FIELDS = frozenset({
    "default_inflation_rate",
    "tax_exemption_threshold",
    "unequal_children_threshold",
})
_INT_FIELDS = frozenset({
    "limitation_years_secured",
    "limitation_years_unsecured",
    "minimum_reason_length",
    "max_reasonable_age",
    "max_reasonable_survival_days",
})


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML file and return its contents as a dict."""
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise PolicyConfigError(str(path), "top level must be a mapping")
    return data


def _parse_decimal(source: str, key: str, value: Any) -> Decimal:
    if isinstance(value, bool):
        raise PolicyConfigError(source, f"{key} must be a number")
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise PolicyConfigError(source, f"{key} must be a number, got {value!r}") from e


def _parse_int(source: str, key: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise PolicyConfigError(source, f"{key} must be an integer, got {value!r}")
    return value


def parse_risk_weights(data: dict[str, Any], source: str = "<dict>") -> RiskWeights:
    known = {f.name for f in fields(RiskWeights)}
    unknown = set(data) - known
    if unknown:
        raise PolicyConfigError(source, f"unknown risk_weights keys: {sorted(unknown)}")
    return RiskWeights(**{k: _parse_int(source, f"risk_weights.{k}", v) for k, v in data.items()})


def policy_from_dict(data: dict[str, Any], source: str = "<dict>") -> SuccessionPolicy:
    """Parse a mapping into a SuccessionPolicy."""
    known = {f.name for f in fields(SuccessionPolicy)}
    unknown = set(data) - known
    if unknown:
        raise PolicyConfigError(source, f"unknown keys: {sorted(unknown)}")

    kwargs: dict[str, Any] = {}
    for key, value in data.items():
        if key in _DECIMAL_FIELDS:
            kwargs[key] = _parse_decimal(source, key, value)
        elif key in _INT_FIELDS:
            kwargs[key] = _parse_int(source, key, value)
        elif key == "overpayment_policy":
            try:
                kwargs[key] = OverpaymentPolicy(str(value).lower())
            except ValueError as e:
                raise PolicyConfigError(
                    source, f"overpayment_policy must be 'clamp' or 'reject', got {value!r}"
                ) from e
        elif key == "risk_weights":
            if not isinstance(value, dict):
                raise PolicyConfigError(source, "risk_weights must be a mapping")
            kwargs[key] = parse_risk_weights(value, source)
        else:
            kwargs[key] = str(value)
    return SuccessionPolicy(**kwargs)


def load_policy(path: Path | str) -> SuccessionPolicy:
    """Load and parse a policy YAML file."""
    path = Path(path)
    return policy_from_dict(load_yaml_file(path), source=str(path))


def compute_checksum(policy: SuccessionPolicy) -> str:
    """Deterministic SHA-256 over the policy's canonical JSON form."""
    payload: dict[str, Any] = {}
    for f in fields(policy):
        value = getattr(policy, f.name)
        if isinstance(value, RiskWeights):
            value = {w.name: getattr(value, w.name) for w in fields(value)}
        elif isinstance(value, OverpaymentPolicy):
            value = value.value
        elif isinstance(value, Decimal):
            value = str(value)
        payload[f.name] = value
    canonical = json.dumps(payload, sort_keys=True)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
