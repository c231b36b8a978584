"""Advisory configuration read from environment variables."""

from __future__ import annotations

import logging
import os
from typing import Mapping, Optional

from .advisory import AdvisoryConfig

logger = logging.getLogger(__name__)

PROVIDERS = ("openai", "anthropic", "local")
PROVIDER_KEY_FALLBACKS = {"openai": "OPENAI_API_KEY", "anthropic": "ANTHROPIC_API_KEY"}
DEFAULT_TIMEOUT = 30.0


def _get(environ: Mapping[str, str], key: str, default: str = "") -> str:
    return (environ.get(key) or default).strip()


def _flag(value: str) -> bool:
    return value.lower() in ("1", "true", "yes")


def load_advisory_config(
    environ: Optional[Mapping[str, str]] = None,
    *,
    provider: Optional[str] = None,
    api_key: Optional[str] = None,
    model: Optional[str] = None,
    disabled: bool = False,
) -> AdvisoryConfig:
    """Build an :class:`AdvisoryConfig` from the environment, with explicit overrides.

    ``DEV_DOCTOR_AI_ENABLED`` defaults to on whenever a key is available.
    """
    environ = os.environ if environ is None else environ

    provider = (provider or _get(environ, "DEV_DOCTOR_AI_PROVIDER", "openai")).lower()
    if provider not in PROVIDERS:
        logger.warning("Unknown advisory provider %r", provider)

    key = api_key or _get(environ, "DEV_DOCTOR_AI_API_KEY")
    if not key and provider in PROVIDER_KEY_FALLBACKS:
        key = _get(environ, PROVIDER_KEY_FALLBACKS[provider])

    enabled_raw = _get(environ, "DEV_DOCTOR_AI_ENABLED")
    enabled = _flag(enabled_raw) if enabled_raw else bool(key)
    if disabled:
        enabled = False

    timeout_raw = _get(environ, "DEV_DOCTOR_AI_TIMEOUT")
    try:
        timeout = float(timeout_raw) if timeout_raw else DEFAULT_TIMEOUT
    except ValueError:
        logger.warning("Ignoring invalid DEV_DOCTOR_AI_TIMEOUT=%r", timeout_raw)
        timeout = DEFAULT_TIMEOUT

    return AdvisoryConfig(
        provider=provider,
        api_key=key or None,
        model=model or _get(environ, "DEV_DOCTOR_AI_MODEL") or None,
        enabled=enabled,
        timeout=timeout,
    )
