"""
Formatter Configuration

Frozen configuration objects for every layer of the formatter, plus
environment loading for the server and CLI entry points.

ENVIRONMENT:
============
PROMFMT_INDENT_SIZE               spaces per nesting level (2)
PROMFMT_OPEN_BRACKET_THRESHOLD    bracket content length that forces a break (30)
PROMFMT_CLOSE_BRACKET_THRESHOLD   line length that forces a break before ")" (40)
PROMFMT_LITERAL_AWARE_VALIDATION  ignore brackets inside string literals (true)
PROMFMT_DELEGATE                  none | http | mock (none)
PROMFMT_DELEGATE_URL              base URL of the HTTP delegate
PROMFMT_READINESS_TIMEOUT         seconds to wait for delegate readiness (10)
PROMFMT_CALL_TIMEOUT              seconds to wait for one delegate call (30)
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Mapping, Optional
import os


DELEGATE_KINDS = ("none", "http", "mock")


@dataclass(frozen=True)
class LayoutConfig:
    """Re-layout constants for the local engine."""
    indent_size: int = 2
    open_bracket_threshold: int = 30
    close_bracket_threshold: int = 40

    def __post_init__(self):
        if self.indent_size < 0:
            raise ValueError("indent_size must be >= 0")
        if self.open_bracket_threshold < 0 or self.close_bracket_threshold < 0:
            raise ValueError("bracket thresholds must be >= 0")


@dataclass(frozen=True)
class ValidatorConfig:
    """Structural validator switches."""
    literal_aware: bool = True


@dataclass(frozen=True)
class DelegateConfig:
    """
    Which delegate engine to use and how long to wait for it.

    A timeout of None waits indefinitely.
    """
    kind: str = "none"
    base_url: Optional[str] = None
    readiness_timeout: Optional[float] = 10.0
    call_timeout: Optional[float] = 30.0

    def __post_init__(self):
        if self.kind not in DELEGATE_KINDS:
            raise ValueError(f"Unknown delegate kind {self.kind!r}; expected one of {DELEGATE_KINDS}")
        if self.kind == "http" and not self.base_url:
            raise ValueError("The http delegate requires base_url")


@dataclass(frozen=True)
class FormatterConfig:
    """Unified configuration for the formatter service."""
    layout: LayoutConfig = None
    validator: ValidatorConfig = None
    delegate: DelegateConfig = None

    def __post_init__(self):
        object.__setattr__(self, "layout", self.layout or LayoutConfig())
        object.__setattr__(self, "validator", self.validator or ValidatorConfig())
        object.__setattr__(self, "delegate", self.delegate or DelegateConfig())

    @staticmethod
    def from_env(environ: Optional[Mapping[str, str]] = None) -> FormatterConfig:
        """Build configuration from PROMFMT_* variables. Raises ValueError on bad values."""
        env = os.environ if environ is None else environ

        layout = LayoutConfig(
            indent_size=_int(env, "PROMFMT_INDENT_SIZE", 2),
            open_bracket_threshold=_int(env, "PROMFMT_OPEN_BRACKET_THRESHOLD", 30),
            close_bracket_threshold=_int(env, "PROMFMT_CLOSE_BRACKET_THRESHOLD", 40),
        )
        validator = ValidatorConfig(
            literal_aware=_bool(env, "PROMFMT_LITERAL_AWARE_VALIDATION", True)
        )
        base_url = env.get("PROMFMT_DELEGATE_URL") or None
        kind = env.get("PROMFMT_DELEGATE", "http" if base_url else "none").strip().lower()
        delegate = DelegateConfig(
            kind=kind,
            base_url=base_url,
            readiness_timeout=_timeout(env, "PROMFMT_READINESS_TIMEOUT", 10.0),
            call_timeout=_timeout(env, "PROMFMT_CALL_TIMEOUT", 30.0),
        )
        return FormatterConfig(layout=layout, validator=validator, delegate=delegate)


def _int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{key} must be an integer, got {raw!r}")


def _bool(env: Mapping[str, str], key: str, default: bool) -> bool:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"{key} must be a boolean, got {raw!r}")


def _timeout(env: Mapping[str, str], key: str, default: float) -> Optional[float]:
    """Seconds as float; "none" or a value <= 0 disables the bound."""
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    if raw.strip().lower() == "none":
        return None
    try:
        seconds = float(raw)
    except ValueError:
        raise ValueError(f"{key} must be a number of seconds, got {raw!r}")
    return seconds if seconds > 0 else None
