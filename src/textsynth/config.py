"""Configuration management for textsynth.

Loads configuration from ~/.config/textsynth/config.toml.
Priority chain: CLI flags > env vars > config file.
"""

import os
import sys
import tomllib
from dataclasses import dataclass
from pathlib import Path

CONFIG_DIR = Path.home() / ".config" / "textsynth"
CONFIG_PATH = CONFIG_DIR / "config.toml"

DEFAULT_CONFIG = """\
# textsynth configuration

[api]
# API root of the TextSynth service
base_url = "https://api.textsynth.com"

# Request timeout in seconds (defaults to 60)
# timeout = 60.0

[completion]
# Engine: "gptj_6B", "boris_6B", "fairseq_gpt_13B"
engine = "gptj_6B"

# Default sampling settings (uncomment to override the service defaults)
# max_tokens = 200
# temperature = 1.0
# top_k = 40
# top_p = 0.9

# The API key is read from an environment variable, not this file:
#   TEXTSYNTH_API_KEY
"""


@dataclass(frozen=True)
class APIConfig:
    """Connection configuration."""

    base_url: str
    timeout: float | None


@dataclass(frozen=True)
class CompletionConfig:
    """Default text completion settings."""

    engine: str
    max_tokens: int | None = None
    temperature: float | None = None
    top_k: int | None = None
    top_p: float | None = None


@dataclass(frozen=True)
class TextSynthConfig:
    """Top-level textsynth configuration."""

    api: APIConfig
    completion: CompletionConfig
    api_key: str | None = None


_cached_config: TextSynthConfig | None = None


def generate_config() -> Path:
    """Generate default config file at ~/.config/textsynth/config.toml."""
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    CONFIG_PATH.write_text(DEFAULT_CONFIG)
    return CONFIG_PATH


def load_config() -> TextSynthConfig:
    """Load configuration from config file with env var overrides.

    On first run, generates the config file and exits so the user
    can review it before proceeding.

    Returns:
        Loaded and validated TextSynthConfig.

    Raises:
        SystemExit: If config is missing (after generating) or invalid.
    """
    global _cached_config
    if _cached_config is not None:
        return _cached_config

    if not CONFIG_PATH.exists():
        path = generate_config()
        print(
            f"No config found. Generated {path}, review it and run again.",
            file=sys.stderr,
        )
        raise SystemExit(1)

    with open(CONFIG_PATH, "rb") as f:
        data = tomllib.load(f)

    api = data.get("api", {})
    completion = data.get("completion", {})

    # Validate required fields
    missing = []
    if "base_url" not in api:
        missing.append("api.base_url")
    if "engine" not in completion:
        missing.append("completion.engine")

    if missing:
        print(
            f"Missing required config values: {', '.join(missing)}",
            file=sys.stderr,
        )
        print(f"Edit {CONFIG_PATH} or delete it to regenerate.", file=sys.stderr)
        raise SystemExit(1)

    # Env vars override config file values
    timeout_str = os.getenv("TEXTSYNTH_TIMEOUT", str(api.get("timeout", "")))

    _cached_config = TextSynthConfig(
        api=APIConfig(
            base_url=os.getenv("TEXTSYNTH_BASE_URL", api["base_url"]),
            timeout=float(timeout_str) if timeout_str else None,
        ),
        completion=CompletionConfig(
            engine=os.getenv("TEXTSYNTH_ENGINE", completion["engine"]),
            max_tokens=completion.get("max_tokens"),
            temperature=completion.get("temperature"),
            top_k=completion.get("top_k"),
            top_p=completion.get("top_p"),
        ),
        api_key=os.getenv("TEXTSYNTH_API_KEY"),
    )

    return _cached_config
