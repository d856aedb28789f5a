"""Engine configuration and environment overrides."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

ENV_PREFIX = "RICHTEXT_ENGINE_"


def _lookup(env: Mapping[str, str], name: str) -> Optional[str]:
    return env.get(f"{ENV_PREFIX}{name}")


def _flag(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = _lookup(env, name)
    if raw is None:
        return default
    return raw.lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True, slots=True)
class EngineConfig:
    """Process-wide settings read once at startup."""

    mention_symbol: str = "@"
    hashtag_symbol: str = "#"
    mention_color: str = "blue"
    strict_ranges: bool = False

    def __post_init__(self) -> None:
        for name in ("mention_symbol", "hashtag_symbol"):
            if len(getattr(self, name)) != 1:
                raise ValueError(f"{name} must be a single character")

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "EngineConfig":
        source = os.environ if env is None else env
        return cls(
            mention_symbol=_lookup(source, "MENTION_SYMBOL") or "@",
            hashtag_symbol=_lookup(source, "HASHTAG_SYMBOL") or "#",
            mention_color=_lookup(source, "MENTION_COLOR") or "blue",
            strict_ranges=_flag(source, "STRICT_RANGES", False),
        )


__all__ = ["EngineConfig", "ENV_PREFIX"]
