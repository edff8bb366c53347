import json
import os
import re
from collections.abc import Mapping
from copy import deepcopy
from typing import Any, List, Tuple

from yaml import safe_load as yaml_load

from bundle_size.validation.install import validate_install_configuration

# Env vars name a nested key with "__": BUNDLE_SIZE__THRESHOLD=2kb sets
# bundle_size.threshold. With this prefix the value is parsed as JSON, which is
# how list values such as commands are given.
JSON_ENV_PREFIX = "JSONCONFIG___"
ENV_PATH_SEPARATOR = "__"

TRUE_VALUES = ("true", "on")
FALSE_VALUES = ("false", "off")
_int_re = re.compile(r"^-?\d+$")
_float_re = re.compile(r"^-?\d+\.\d+$")

default_config = {
    "bundle_size": {
        "threshold": 1024,
        "comment_strategy": "always",
        "base_branch": "main",
        "working_directory": ".",
        "build_directory": ".next",
        "install_command": "npm ci",
        "install_args": "--legacy-peer-deps",
        "build_command": "npm run build",
        "snapshot_store": "rebuild",
        "storage_root": ".bundle-size",
    },
    "github": {
        "api_url": "https://api.github.com",
    },
}


class MissingConfigException(Exception):
    pass


def merge(base: Mapping, override: Mapping) -> dict:
    """Deep merge returning a new dict; values of `override` win"""
    result = deepcopy(dict(base))
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(result.get(key), Mapping):
            result[key] = merge(result[key], value)
        else:
            result[key] = value
    return result


def cast_env_value(value: Any) -> Any:
    if not isinstance(value, str):
        return value
    if value.lower() in TRUE_VALUES:
        return True
    if value.lower() in FALSE_VALUES:
        return False
    if _int_re.match(value):
        return int(value)
    if _float_re.match(value):
        return float(value)
    return value


def parse_env_var(name: str, value: str) -> Tuple[List[str], Any]:
    """
    Path in the config and typed value of one env var.

        parse_env_var("BUNDLE_SIZE__THRESHOLD", "2048")
            == (["bundle_size", "threshold"], 2048)
    """
    if name.startswith(JSON_ENV_PREFIX):
        name = name[len(JSON_ENV_PREFIX) :]
        value = json.loads(value)
    path = [part.lower() for part in name.split(ENV_PATH_SEPARATOR)]
    return path, cast_env_value(value)


class ConfigHelper(object):
    """
    Final config: defaults, overridden by the yaml file, overridden by env vars.
    Computed once, on first access.
    """

    def __init__(self):
        self._params = None

    @property
    def params(self):
        if self._params is None:
            merged = merge(default_config, self.yaml_content())
            merged = merge(merged, self.load_env_var())
            self.set_params(validate_install_configuration(merged))
        return self._params

    def set_params(self, val):
        self._params = val

    def get(self, *path):
        current = self.params
        for key in path:
            try:
                current = current[key]
            except (KeyError, TypeError):
                raise MissingConfigException(path)
        return current

    def load_env_var(self) -> dict:
        result = {}
        for name, value in os.environ.items():
            if name.startswith(ENV_PATH_SEPARATOR) or ENV_PATH_SEPARATOR not in name:
                continue
            path, data = parse_env_var(name, value)
            node = result
            for key in path[:-1]:
                node = node.setdefault(key, {})
            node[path[-1]] = data
        return result

    def load_yaml_file(self) -> str:
        yaml_path = os.getenv("BUNDLE_SIZE_YML", "bundle-size.yml")
        with open(yaml_path, "r") as c:
            return c.read()

    def yaml_content(self) -> dict:
        try:
            return yaml_load(self.load_yaml_file()) or {}
        except FileNotFoundError:
            return {}


config_class_instance = ConfigHelper()


def _get_config_instance():
    return config_class_instance


def get_config(*path, default=None):
    try:
        return _get_config_instance().get(*path)
    except MissingConfigException:
        return default
