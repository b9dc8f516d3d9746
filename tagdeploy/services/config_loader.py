# tagdeploy/services/config_loader.py
from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple, Union

from tagdeploy.models.deployment import DeployableFunction
from tagdeploy.models.errors import ConfigError

DEFAULT_BUILD_COMMAND = ("npm", "run", "build")


@dataclass(frozen=True)
class DeployConfig:
    functions: List[DeployableFunction] = field(default_factory=list)
    region: Optional[str] = None
    build_command: Tuple[str, ...] = DEFAULT_BUILD_COMMAND

    def find(self, name: str) -> Optional[DeployableFunction]:
        return next((f for f in self.functions if f.name == name), None)


def _function(item, index: int) -> DeployableFunction:
    if not isinstance(item, dict):
        raise ConfigError(f"functions[{index}] must be a table")
    name, bundle = item.get("name"), item.get("bundle")
    if not isinstance(name, str) or not name:
        raise ConfigError(f"functions[{index}] needs a non-empty 'name'")
    if not isinstance(bundle, str) or not bundle:
        raise ConfigError(f"functions[{index}] ({name}) needs a 'bundle' path")
    return DeployableFunction(name=name, bundle=Path(bundle))


def load_config(path: Union[str, Path]) -> DeployConfig:
    """
    Read a TOML deploy config:

        region = "eu-west-1"                  # optional
        build_command = ["npm", "run", "build"]  # optional

        [[functions]]
        name = "api"
        bundle = "dist/index.js"

    Bundle paths are kept as written; a relative one is resolved against the
    repository being deployed, not the current directory.
    """
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except OSError as e:
        raise ConfigError(f"Could not read config {path}: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Malformed config {path}: {e}") from e

    items = data.get("functions")
    if not isinstance(items, list):
        raise ConfigError(f"{path}: expected a [[functions]] array")
    functions = [_function(item, i) for i, item in enumerate(items)]

    region = data.get("region")
    if region is not None and not isinstance(region, str):
        raise ConfigError(f"{path}: 'region' must be a string")

    command = data.get("build_command", list(DEFAULT_BUILD_COMMAND))
    if not isinstance(command, list) or not command or not all(isinstance(c, str) for c in command):
        raise ConfigError(f"{path}: 'build_command' must be a non-empty list of strings")

    return DeployConfig(functions=functions, region=region, build_command=tuple(command))
