from pathlib import Path

import pytest

from tagdeploy.models.deployment import DeployableFunction
from tagdeploy.models.errors import ConfigError
from tagdeploy.services.config_loader import DEFAULT_BUILD_COMMAND, load_config

CONFIG = """
region = "eu-west-1"
build_command = ["yarn", "build"]

[[functions]]
name = "api"
bundle = "dist/index.js"

[[functions]]
name = "worker"
bundle = "dist/worker.js"
"""


def _write(tmp_path, text: str) -> Path:
    path = tmp_path / "deploy.toml"
    path.write_text(text, encoding="utf-8")
    return path


def test_load_full_config(tmp_path):
    config = load_config(_write(tmp_path, CONFIG))

    assert config.region == "eu-west-1"
    assert config.build_command == ("yarn", "build")
    assert config.functions == [
        DeployableFunction("api", Path("dist/index.js")),
        DeployableFunction("worker", Path("dist/worker.js")),
    ]


def test_defaults(tmp_path):
    config = load_config(_write(tmp_path, '[[functions]]\nname = "api"\nbundle = "dist/index.js"\n'))

    assert config.region is None
    assert config.build_command == DEFAULT_BUILD_COMMAND


def test_find(tmp_path):
    config = load_config(_write(tmp_path, CONFIG))

    assert config.find("worker").bundle == Path("dist/worker.js")
    assert config.find("missing") is None


def test_missing_file(tmp_path):
    with pytest.raises(ConfigError):
        load_config(tmp_path / "nope.toml")


@pytest.mark.parametrize("text", [
    "functions = [",                                      # not TOML
    'name = "api"',                                       # no [[functions]]
    '[[functions]]\nname = "api"\n',                      # no bundle
    '[[functions]]\nbundle = "dist/index.js"\n',          # no name
    'build_command = "npm run build"\n[[functions]]\nname = "a"\nbundle = "b"\n',
    'region = 5\n[[functions]]\nname = "a"\nbundle = "b"\n',
])
def test_malformed_config(tmp_path, text):
    with pytest.raises(ConfigError):
        load_config(_write(tmp_path, text))
