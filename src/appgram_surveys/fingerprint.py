"""Respondent fingerprint — a stable, anonymous per-machine identifier.

Responses are attributed to a fingerprint so that anonymous respondents can
be told apart.  The fingerprint is generated once from a few machine
characteristics plus a timestamp and random suffix, then persisted to a small
file and reused on every later call.

The file location defaults to ``~/.appgram/fingerprint`` and can be moved via
the ``APPGRAM_FINGERPRINT_PATH`` env var.  When the file cannot be written
(read-only home, sandbox) the fingerprint is kept in memory for the lifetime
of the process instead.
"""

from __future__ import annotations

import functools
import hashlib
import logging
import os
import platform
import secrets
import time
from pathlib import Path

from appgram_surveys.config import ClientSettings, load_settings
from appgram_surveys.interfaces import FingerprintProvider

logger = logging.getLogger(__name__)

_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"

# Fallback store for paths that could not be written, keyed by path
_memory: dict[str, str] = {}


def _base36(num: int) -> str:
    if num == 0:
        return "0"
    digits = []
    while num:
        num, rem = divmod(num, 36)
        digits.append(_ALPHABET[rem])
    return "".join(reversed(digits))


def default_fingerprint_path() -> Path:
    """Where the fingerprint is persisted unless a path is passed explicitly."""
    env = os.getenv("APPGRAM_FINGERPRINT_PATH")
    if env:
        return Path(env)
    return Path.home() / ".appgram" / "fingerprint"


def _machine_characteristics() -> str:
    parts = [
        platform.system(),
        platform.release(),
        platform.machine(),
        platform.node(),
        platform.python_implementation(),
        str(os.cpu_count() or 0),
        str(time.timezone),
    ]
    return "|".join(parts)


def generate_fingerprint() -> str:
    """Create a new fingerprint: ``<machine hash>-<timestamp>-<random>``."""
    digest = hashlib.sha256(_machine_characteristics().encode("utf-8")).digest()
    machine = _base36(int.from_bytes(digest[:6], "big"))
    timestamp = _base36(int(time.time() * 1000))
    random_part = _base36(int.from_bytes(secrets.token_bytes(6), "big"))[:10]
    return f"{machine}-{timestamp}-{random_part}"


def get_fingerprint(path: Path | str | None = None) -> str:
    """Return the persisted fingerprint, creating it on first use."""
    target = Path(path) if path is not None else default_fingerprint_path()
    key = str(target)

    if key in _memory:
        return _memory[key]

    try:
        existing = target.read_text(encoding="utf-8").strip()
        if existing:
            return existing
    except FileNotFoundError:
        pass
    except OSError as exc:
        logger.warning("Could not read fingerprint file %s: %s", target, exc)

    fingerprint = generate_fingerprint()
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(fingerprint, encoding="utf-8")
        logger.info("Created respondent fingerprint at %s", target)
    except OSError as exc:
        logger.warning(
            "Could not persist fingerprint to %s (%s); keeping it in memory", target, exc
        )
        _memory[key] = fingerprint
    return fingerprint


def reset_fingerprint(path: Path | str | None = None) -> None:
    """Forget the stored fingerprint so the next call generates a new one."""
    target = Path(path) if path is not None else default_fingerprint_path()
    _memory.pop(str(target), None)
    try:
        target.unlink(missing_ok=True)
    except OSError as exc:
        logger.warning("Could not remove fingerprint file %s: %s", target, exc)


def fingerprint_provider(settings: ClientSettings | None = None) -> FingerprintProvider:
    """Fingerprint provider bound to ``settings.fingerprint_path``.

    Pass the result as ``fingerprint=`` to a navigator or session.
    """
    if settings is None:
        settings = load_settings()
    return functools.partial(get_fingerprint, settings.fingerprint_path)
