"""Decoder defaults, overridable from the environment.

Explicit keyword arguments passed to the decoders always win; these values
only fill in what the caller left out.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any

import structlog

log = structlog.get_logger()

_DEFAULTS: dict[str, Any] = {
    "chunk_size": 4096,
    "best_effort": False,
    "literal_charset": "utf-8",
}

_TRUE = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class DecoderConfig:
    chunk_size: int = _DEFAULTS["chunk_size"]
    best_effort: bool = _DEFAULTS["best_effort"]
    literal_charset: str = _DEFAULTS["literal_charset"]


def get_config() -> DecoderConfig:
    """Build a DecoderConfig from the defaults and MIME_READER_* variables."""
    config = dict(_DEFAULTS)
    raw_chunk = os.getenv("MIME_READER_CHUNK_SIZE")
    if raw_chunk:
        try:
            chunk_size = int(raw_chunk)
            if chunk_size < 1:
                raise ValueError(raw_chunk)
            config["chunk_size"] = chunk_size
        except ValueError:
            log.warning("config_value_invalid", key="MIME_READER_CHUNK_SIZE",
                        value=raw_chunk, using=config["chunk_size"])
    raw_best = os.getenv("MIME_READER_BEST_EFFORT")
    if raw_best is not None:
        config["best_effort"] = raw_best.strip().lower() in _TRUE
    charset = os.getenv("MIME_READER_LITERAL_CHARSET")
    if charset:
        config["literal_charset"] = charset.strip()
    return DecoderConfig(**config)
