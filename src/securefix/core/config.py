"""Configuration management for SecureFix (securefix.toml parsing + defaults)."""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

from securefix.core.models import EngineId


@dataclass
class EngineConfig:
    model: str
    api_key_env: str
    max_tokens: int = 80
    temperature: float = 0.0
    top_p: float = 0.8


def _default_engines() -> dict[EngineId, EngineConfig]:
    return {
        EngineId.OPENAI: EngineConfig(model="gpt-3.5-turbo", api_key_env="OPENAI_API_KEY"),
        EngineId.GROQ: EngineConfig(model="llama3-8b-8192", api_key_env="GROQ_API_KEY"),
        EngineId.ANTHROPIC: EngineConfig(
            model="claude-sonnet-4-20250514", api_key_env="ANTHROPIC_API_KEY"
        ),
    }


@dataclass
class FixConfig:
    prefer_generative: bool = True
    default_engine: EngineId = EngineId.OPENAI
    timeout_seconds: float = 5.0
    max_candidate_length: int = 200
    engines: dict[EngineId, EngineConfig] = field(default_factory=_default_engines)


@dataclass
class RecorderConfig:
    enabled: bool = True
    filename: str = "outcomes.log"


@dataclass
class SecureFixConfig:
    """Complete SecureFix configuration.

    Passed explicitly into :class:`~securefix.fix.engine.FixEngine`; the
    engine never reads ambient state except through ``environ``.
    """

    fix: FixConfig = field(default_factory=FixConfig)
    recorder: RecorderConfig = field(default_factory=RecorderConfig)
    environ: Mapping[str, str] = field(default_factory=lambda: os.environ)

    def engine_config(self, engine: EngineId) -> EngineConfig:
        return self.fix.engines[engine]

    def api_key(self, engine: EngineId) -> str | None:
        """Return the credential for an engine, or None if unset."""
        cfg = self.fix.engines.get(engine)
        if cfg is None:
            return None
        return self.environ.get(cfg.api_key_env) or None

    def engine_available(self, engine: EngineId) -> bool:
        return self.api_key(engine) is not None


def load_config(project_path: Path | None = None) -> SecureFixConfig:
    """Load configuration from securefix.toml if present, otherwise return defaults."""
    config = SecureFixConfig()

    if project_path is None:
        project_path = Path.cwd()

    config_file = project_path / "securefix.toml"
    if not config_file.exists():
        return config

    with open(config_file, "rb") as f:
        data = tomllib.load(f)

    if "fix" in data:
        fx = data["fix"]
        if "prefer_generative" in fx:
            config.fix.prefer_generative = bool(fx["prefer_generative"])
        if "default_engine" in fx:
            config.fix.default_engine = EngineId(fx["default_engine"])
        if "timeout_seconds" in fx:
            config.fix.timeout_seconds = float(fx["timeout_seconds"])
        if "max_candidate_length" in fx:
            config.fix.max_candidate_length = int(fx["max_candidate_length"])
        for name, overrides in fx.get("engines", {}).items():
            engine_cfg = config.fix.engines[EngineId(name)]
            for attr in ("model", "api_key_env", "max_tokens", "temperature", "top_p"):
                if attr in overrides:
                    setattr(engine_cfg, attr, overrides[attr])

    if "recorder" in data:
        r = data["recorder"]
        for attr in ("enabled", "filename"):
            if attr in r:
                setattr(config.recorder, attr, r[attr])

    return config


def get_securefix_dir(project_path: Path | None = None) -> Path:
    """Get or create the .securefix directory."""
    if project_path is None:
        project_path = Path.cwd()
    securefix_dir = project_path / ".securefix"
    securefix_dir.mkdir(exist_ok=True)
    return securefix_dir
