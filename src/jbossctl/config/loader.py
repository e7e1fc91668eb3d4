import os
import re
import yaml
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError

from jbossctl.config.settings import ControlConfig
from jbossctl.core.models import TargetDescriptor
from jbossctl.core.registry import TargetRegistry
from jbossctl.utils.diagnostics import ConfigurationError

ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+)(?::([^}]+))?\}")
ALLOWED_KEYS = {"jbossctl", "management", "servers"}
REQUIRED_HOME_SUBDIRS = ("bin", "server")

def interpolate_env_vars(content: str) -> str:
    """Replace ${VAR} or ${VAR:default} with environment variables."""
    def replace_match(match: re.Match) -> str:
        var_name = match.group(1)
        default_value = match.group(2) if match.group(2) is not None else ""
        return os.environ.get(var_name, default_value)

    return ENV_VAR_PATTERN.sub(replace_match, content)

def load_config(path: Path) -> Dict[str, Any]:
    """
    Load jbossctl.yaml with environment variable interpolation.

    Only the keys jbossctl, management and servers are kept. A missing file is an
    empty configuration; an unreadable or malformed one is a ConfigurationError.
    """
    if not path.exists():
        return {}

    try:
        content = path.read_text(encoding="utf-8")
        full_config = yaml.safe_load(interpolate_env_vars(content)) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Unable to read configuration '{path}': {exc}") from exc

    if not isinstance(full_config, dict):
        raise ConfigurationError(f"Configuration '{path}' must be a mapping at the top level.")

    return {k: v for k, v in full_config.items() if k in ALLOWED_KEYS}

def validate_install_directory(install_directory: Path) -> Optional[str]:
    """
    Return a problem description when the path does not look like a JBoss home,
    or None when it does.
    """
    if not str(install_directory).strip():
        return "Please set path to JBoss home."
    if not install_directory.exists():
        return "Path doesn't exist."
    if not install_directory.is_dir():
        return "Path is not valid directory."
    for sub_dir in REQUIRED_HOME_SUBDIRS:
        if not (install_directory / sub_dir).is_dir():
            return "It doesn't look like a correct JBoss home directory."
    return None

def parse_targets(entries: Any, check_directories: bool = False) -> List[TargetDescriptor]:
    """Validate the 'servers' section into descriptors, in file order."""
    if entries is None:
        return []
    if not isinstance(entries, list):
        raise ConfigurationError("The 'servers' section must be a list.")

    targets: List[TargetDescriptor] = []
    for index, entry in enumerate(entries):
        label = entry.get("name", f"#{index}") if isinstance(entry, dict) else f"#{index}"
        try:
            target = TargetDescriptor.model_validate(entry)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid server entry '{label}': {exc}") from exc

        if check_directories and target.is_local:
            problem = validate_install_directory(target.install_directory)
            if problem:
                raise ConfigurationError(f"Invalid server entry '{label}': {problem}")
        targets.append(target)
    return targets

def load_control(path: Path, check_directories: bool = False) -> Tuple[ControlConfig, TargetRegistry]:
    """Read settings and the server registry from one configuration file."""
    raw = load_config(path)
    try:
        config = ControlConfig.from_dict(raw)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid settings in '{path}': {exc}") from exc

    targets = parse_targets(raw.get("servers"), check_directories=check_directories)
    try:
        registry = TargetRegistry(targets)
    except ValueError as exc:
        raise ConfigurationError(str(exc)) from exc
    return config, registry

def load_registry(path: Path, check_directories: bool = False) -> TargetRegistry:
    """Build a TargetRegistry from the 'servers' section of a configuration file."""
    return load_control(path, check_directories=check_directories)[1]
