"""devtoolbox configuration loader.

Priority (high → low):
  1. CLI flags              (handled at call site, not in this module)
  2. Environment variables  (DEVTOOLBOX_CHAT_MODEL)
  3. Per-project devtoolbox.yaml
  4. Global ~/.devtoolbox/config.yaml  (no API keys)
  5. Hardcoded defaults

Global config must never contain API keys; use environment variables instead.
All YAML reads use yaml.safe_load().
"""

from __future__ import annotations

import os
import re
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from devtoolbox.context.base import CHUNK_SIZE
from devtoolbox.context.models import MAX_CHUNKS_PER_SOURCE
from devtoolbox.context.retrieval import DEFAULT_MAX_TOKENS

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_GLOBAL_CONFIG_DIR: Path = Path.home() / ".devtoolbox"
_GLOBAL_CONFIG_PATH: Path = _GLOBAL_CONFIG_DIR / "config.yaml"
_PROJECT_CONFIG_NAME: str = "devtoolbox.yaml"

# Key names that look like credentials. Does not match max_tokens or
# max_file_bytes.
_API_KEY_RE: re.Pattern[str] = re.compile(
    r"api[_\-]?(?:key|secret)"
    r"|_token$"
    r"|^token$"
    r"|_secret$"
    r"|^secret$"
    r"|passw(?:ord|d)"
    r"|credential",
    re.IGNORECASE,
)

_KNOWN_SECTIONS: frozenset[str] = frozenset(["chat", "context", "github"])

DEFAULT_SYSTEM_PROMPT = """\
You are an expert AI developer assistant specialized in helping with:
- Code generation in multiple programming languages
- Debugging and troubleshooting code issues
- Creating responsive web designs with HTML/CSS
- Writing technical documentation
- Best practices and code optimization

Provide clear, concise, and practical solutions. When generating code, include \
comments for clarity."""


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(ValueError):
    """Raised when a config file contains an invalid or forbidden value."""


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass
class ChatCfg:
    """Chat-completion settings (devtoolbox.yaml: chat:)."""

    model: str = "groq/llama3-8b-8192"
    temperature: float = 0.7
    max_tokens: int = 1024
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    stream: bool = True


@dataclass
class ContextCfg:
    """Chunking and retrieval budgets (devtoolbox.yaml: context:).

    Attributes:
        chunk_size: Estimated-token budget per chunk.
        max_chunks_per_source: Chunks kept per source (hard cap 50).
        max_tokens: Token budget for context attached to one question.
    """

    chunk_size: int = CHUNK_SIZE
    max_chunks_per_source: int = MAX_CHUNKS_PER_SOURCE
    max_tokens: int = DEFAULT_MAX_TOKENS


@dataclass
class GithubCfg:
    """Repository fetcher limits (devtoolbox.yaml: github:)."""

    api_url: str = "https://api.github.com"
    max_files: int = 20
    max_file_bytes: int = 100_000


@dataclass
class ToolboxConfig:
    """Root configuration object, built by load_config() from merged YAML layers."""

    chat: ChatCfg = field(default_factory=ChatCfg)
    context: ContextCfg = field(default_factory=ContextCfg)
    github: GithubCfg = field(default_factory=GithubCfg)


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _check_no_api_keys(data: dict[str, Any], source: Path) -> None:
    """Raise ConfigError if *data* contains any API-key-like key names."""

    def _scan(obj: Any, path: str) -> None:
        if isinstance(obj, dict):
            for k, v in obj.items():
                full = f"{path}.{k}" if path else k
                if _API_KEY_RE.search(str(k)):
                    raise ConfigError(
                        f"Global config '{source}' contains a forbidden key '{full}'.\n"
                        f"  API keys must be set via environment variables, not config files.\n"
                        f"  Remove '{full}' from {source.name} and use:\n"
                        f"    export {str(k).upper().replace('-', '_')}=<value>"
                    )
                _scan(v, full)

    _scan(data, "")


def _read_yaml(path: Path) -> dict[str, Any]:
    """Parse *path* with yaml.safe_load(); an empty file is an empty mapping."""
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"Could not parse '{path}': {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(
            f"Config file '{path}' must contain a mapping, got {type(data).__name__}"
        )
    return data


def _warn_unknown_keys(data: dict[str, Any], source: Path) -> None:
    for key in data:
        if key not in _KNOWN_SECTIONS:
            warnings.warn(
                f"Unknown config key '{key}' in '{source}' (ignored).",
                UserWarning,
                stacklevel=4,
            )


def _validate(cfg: ToolboxConfig) -> None:
    if cfg.context.chunk_size < 1:
        raise ConfigError("context.chunk_size must be >= 1")
    if not 1 <= cfg.context.max_chunks_per_source <= MAX_CHUNKS_PER_SOURCE:
        raise ConfigError(
            f"context.max_chunks_per_source must be between 1 and {MAX_CHUNKS_PER_SOURCE}"
        )
    if cfg.context.max_tokens < 0:
        raise ConfigError("context.max_tokens must be >= 0")
    if not 0.0 <= cfg.chat.temperature <= 2.0:
        raise ConfigError("chat.temperature must be in [0.0, 2.0]")


# ---------------------------------------------------------------------------
# Merge + build
# ---------------------------------------------------------------------------


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return a new dict that is *base* deep-merged with *override*."""
    result = dict(base)
    for k, v in override.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    value = data[name] or {}
    if not isinstance(value, dict):
        raise ConfigError(
            f"Config section '{name}' must be a mapping of keys, got {type(value).__name__}"
        )
    return value


def _cfg_from_dict(data: dict[str, Any]) -> ToolboxConfig:
    """Build a *ToolboxConfig* from a merged raw YAML dict."""
    cfg = ToolboxConfig()

    if "chat" in data:
        c = _section(data, "chat")
        cfg.chat = ChatCfg(
            model=str(c.get("model", cfg.chat.model)),
            temperature=float(c.get("temperature", cfg.chat.temperature)),
            max_tokens=int(c.get("max_tokens", cfg.chat.max_tokens)),
            system_prompt=str(c.get("system_prompt", cfg.chat.system_prompt)),
            stream=bool(c.get("stream", cfg.chat.stream)),
        )

    if "context" in data:
        x = _section(data, "context")
        cfg.context = ContextCfg(
            chunk_size=int(x.get("chunk_size", cfg.context.chunk_size)),
            max_chunks_per_source=int(
                x.get("max_chunks_per_source", cfg.context.max_chunks_per_source)
            ),
            max_tokens=int(x.get("max_tokens", cfg.context.max_tokens)),
        )

    if "github" in data:
        g = _section(data, "github")
        cfg.github = GithubCfg(
            api_url=str(g.get("api_url", cfg.github.api_url)).rstrip("/"),
            max_files=int(g.get("max_files", cfg.github.max_files)),
            max_file_bytes=int(g.get("max_file_bytes", cfg.github.max_file_bytes)),
        )

    return cfg


def _apply_env_overrides(cfg: ToolboxConfig) -> ToolboxConfig:
    if model := os.environ.get("DEVTOOLBOX_CHAT_MODEL"):
        cfg.chat.model = model
    return cfg


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(
    project_dir: Path | None = None,
    *,
    global_config_path: Path | None = None,
) -> ToolboxConfig:
    """Load and return a merged *ToolboxConfig*.

    Applies layers in order: global → per-project → env vars.
    CLI flag overrides must be applied by the caller after this function.

    Args:
        project_dir: Directory to search for *devtoolbox.yaml*. Defaults to CWD.
        global_config_path: Override the global config path (for testing).

    Raises:
        ConfigError: If a config file is not valid YAML or not a mapping, the
            global config contains API-key-like fields, or a value is out of
            range.
    """
    global_path = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    search_dir = project_dir if project_dir is not None else Path.cwd()

    merged: dict[str, Any] = {}

    if global_path.exists():
        raw_global = _read_yaml(global_path)
        _check_no_api_keys(raw_global, global_path)
        _warn_unknown_keys(raw_global, global_path)
        merged = _deep_merge(merged, raw_global)

    project_cfg_path = search_dir / _PROJECT_CONFIG_NAME
    if project_cfg_path.exists():
        raw_project = _read_yaml(project_cfg_path)
        _warn_unknown_keys(raw_project, project_cfg_path)
        merged = _deep_merge(merged, raw_project)

    try:
        cfg = _cfg_from_dict(merged)
    except ConfigError:
        raise
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid config value: {exc}") from exc

    _validate(cfg)
    return _apply_env_overrides(cfg)


def ensure_global_config(global_config_path: Path | None = None) -> Path:
    """Create ``~/.devtoolbox/config.yaml`` with defaults if it does not exist.

    The directory is created with mode 0o700 and the file with mode 0o600.
    """
    target = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    target.parent.mkdir(mode=0o700, parents=True, exist_ok=True)

    if not target.exists():
        content = (
            "# devtoolbox global configuration: model defaults only.\n"
            "# NEVER store API keys here; use environment variables:\n"
            "#   export GROQ_API_KEY=gsk_...\n"
            "#   export GITHUB_TOKEN=ghp_...   (optional, raises GitHub rate limits)\n"
            "\n"
            "chat:\n"
            "  model: groq/llama3-8b-8192\n"
            "  temperature: 0.7\n"
            "  max_tokens: 1024\n"
            "\n"
            "context:\n"
            "  max_tokens: 4000\n"
        )
        target.write_text(content, encoding="utf-8")
        target.chmod(0o600)

    return target
