"""
OrderTime configuration

Settings are read from the environment once, at the handler boundary,
and passed into the client as plain dataclasses. Tests build them from
a dict instead of mutating os.environ.

Report endpoint:
- OT_REPORT_URL (required)
- OT_BEARER_TOKEN (preferred) or OT_BASIC_USER + OT_BASIC_PASS

Live endpoint:
- OT_BASE_URL, OT_API_KEY (required)
- OT_BASIC_USER + OT_BASIC_PASS (extra auth attempt)
- OT_PAGE_SIZE, OT_TYPE_* (per-tenant tuning)
"""

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

from .errors import ConfigurationError


# ============================================================
# DEFAULTS
# ============================================================

# Entity logical names used by OrderTime's /list API.
# A 400 with "unknown type" means the tenant uses different names;
# override them with the OT_TYPE_* variables.
ORDERTIME_TYPES = {
    'inventory': 'InventoryBalance',  # OnHand + refs to Item, Lot/Serial, Bin, Location
    'lot_serial': 'LotOrSerialNo',    # LotOrSerialNumber + ExpirationDate
    'item': 'PartItem',               # Name + cost fields
    'bin': 'Bin',                     # Name
}

DEFAULT_PAGE_SIZE = 500
DEFAULT_TIMEOUT = 60.0


def _get(env: Mapping[str, str], name: str) -> Optional[str]:
    value = env.get(name)
    if value is None:
        return None
    value = value.strip()
    return value or None


def _get_float(env: Mapping[str, str], name: str, default: float) -> float:
    value = _get(env, name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {value!r}")


# ============================================================
# CONFIG OBJECTS
# ============================================================

@dataclass
class ReportConfig:
    """Settings for the CSV/JSON report export endpoint"""
    report_url: str
    bearer_token: Optional[str] = None
    basic_user: Optional[str] = None
    basic_pass: Optional[str] = None
    timeout: float = DEFAULT_TIMEOUT

    @classmethod
    def from_env(cls, env: Mapping[str, str] = None) -> 'ReportConfig':
        env = os.environ if env is None else env

        report_url = _get(env, 'OT_REPORT_URL')
        if not report_url:
            raise ConfigurationError("OT_REPORT_URL is not set")

        return cls(
            report_url=report_url,
            bearer_token=_get(env, 'OT_BEARER_TOKEN'),
            basic_user=_get(env, 'OT_BASIC_USER'),
            basic_pass=_get(env, 'OT_BASIC_PASS'),
            timeout=_get_float(env, 'OT_TIMEOUT', DEFAULT_TIMEOUT),
        )


@dataclass
class LiveConfig:
    """Settings for the paginated /list API"""
    base_url: str
    api_key: str
    basic_user: Optional[str] = None
    basic_pass: Optional[str] = None
    page_size: int = DEFAULT_PAGE_SIZE
    timeout: float = DEFAULT_TIMEOUT
    types: dict = field(default_factory=lambda: dict(ORDERTIME_TYPES))

    @property
    def list_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/list"

    @classmethod
    def from_env(cls, env: Mapping[str, str] = None) -> 'LiveConfig':
        env = os.environ if env is None else env

        base_url = _get(env, 'OT_BASE_URL')
        api_key = _get(env, 'OT_API_KEY')
        if not base_url or not api_key:
            raise ConfigurationError(
                "Missing envs",
                have_base_url=bool(base_url),
                have_key=bool(api_key),
            )

        page_size = int(_get_float(env, 'OT_PAGE_SIZE', DEFAULT_PAGE_SIZE))
        if page_size < 1:
            raise ConfigurationError("OT_PAGE_SIZE must be at least 1")

        types = {
            key: _get(env, f"OT_TYPE_{key.upper()}") or default
            for key, default in ORDERTIME_TYPES.items()
        }

        return cls(
            base_url=base_url,
            api_key=api_key,
            basic_user=_get(env, 'OT_BASIC_USER'),
            basic_pass=_get(env, 'OT_BASIC_PASS'),
            page_size=page_size,
            timeout=_get_float(env, 'OT_TIMEOUT', DEFAULT_TIMEOUT),
            types=types,
        )
