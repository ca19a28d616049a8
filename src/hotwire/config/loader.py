import os
import re
import yaml
from pathlib import Path
from typing import Any, Dict

from hotwire.core.models import HotwireConfig

CONFIG_FILE_NAME = "hotwire.yaml"
ALLOWED_SECTIONS = {"hotwire", "discovery", "commands", "hot_reload"}

ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+)(?::([^}]+))?\}")

def interpolate_env_vars(content: str) -> str:
    """Replace ${VAR} or ${VAR:default} with environment variables."""
    def replace_match(match: re.Match) -> str:
        var_name = match.group(1)
        default_value = match.group(2) if match.group(2) is not None else ""
        return os.environ.get(var_name, default_value)

    return ENV_VAR_PATTERN.sub(replace_match, content)

def load_config(path: Path) -> Dict[str, Any]:
    """
    Load hotwire.yaml with environment variable interpolation.

    Keeps only the known sections: hotwire, discovery, commands, hot_reload.
    A missing file yields an empty dict; malformed YAML raises ValueError.
    """
    if not path.exists():
        return {}

    content = path.read_text()
    interpolated_content = interpolate_env_vars(content)
    try:
        full_config = yaml.safe_load(interpolated_content) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}")

    if not isinstance(full_config, dict):
        raise ValueError(f"{path} must contain a mapping at the top level.")

    return {k: v for k, v in full_config.items() if k in ALLOWED_SECTIONS}

def load_runtime_config(root_dir: Path) -> HotwireConfig:
    """Build the resolved runtime configuration for a project root."""
    resolved_root = root_dir.expanduser().resolve()
    return HotwireConfig.from_dict(resolved_root, load_config(resolved_root / CONFIG_FILE_NAME))
