import os
from dataclasses import dataclass, fields, replace
from typing import Optional

import yaml

from clickonce_version import module_logger
from clickonce_version.errors import ConfigurationError
from clickonce_version.version import is_explicit_version

CONFIG_FILENAME = "clickonce_version.yaml"
CONFIG_PATH_VARIABLE = "CLICKONCE_VERSION_CONFIG"

# Option name -> environment variable
ENVIRONMENT_VARIABLES = {
    "version": "CLICKONCE_VERSION",
    "build_id": "CLICKONCE_BUILD_ID",
    "publish_url": "CLICKONCE_PUBLISH_URL",
    "install_url": "CLICKONCE_INSTALL_URL",
}

@dataclass(frozen=True)
class UpdateOptions:
    """The changes requested for a project file."""
    version : Optional[str] = None
    build_id : Optional[int] = None
    increment_revision : bool = False
    update_min_version : bool = False
    publish_url : Optional[str] = None
    install_url : Optional[str] = None

    @property
    def has_changes(self) -> bool:
        return any((
            self.version is not None,
            self.build_id is not None,
            self.increment_revision,
            self.update_min_version,
            self.publish_url is not None,
            self.install_url is not None,
        ))

OPTION_NAMES = tuple(f.name for f in fields(UpdateOptions))

def _check_type(key, value):
    if value is None:
        return value
    if key in ("increment_revision", "update_min_version"):
        if not isinstance(value, bool):
            raise ConfigurationError("Expected bool for '{}', got {}".format(key, type(value)))
    elif key == "build_id":
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ConfigurationError(f"Expected a non-negative integer for 'build_id', got {value!r}")
    elif key == "version":
        # YAML reads "1.2" style values as floats, only full version strings are accepted.
        if not is_explicit_version(value):
            raise ConfigurationError(f"Expected a Major.Minor.Build[.Revision] string for 'version', got {value!r}")
    elif not isinstance(value, str):
        raise ConfigurationError("Expected string for '{}', got {}".format(key, type(value)))
    return value

def find_config_path(project_file=None, config_path=None) -> Optional[str]:
    """
    The configuration file to use: ``config_path`` if given, then the file named
    by ``$CLICKONCE_VERSION_CONFIG``, then ``clickonce_version.yaml`` next to the
    project file. Returns None if there is none.
    """
    if config_path:
        return config_path
    env_path = os.getenv(CONFIG_PATH_VARIABLE)
    if env_path:
        return env_path
    if project_file is not None:
        candidate = os.path.join(os.path.dirname(os.path.abspath(project_file)), CONFIG_FILENAME)
        if os.path.isfile(candidate):
            return candidate
    return None

def load_config(path) -> dict:
    if not os.path.isfile(path):
        raise ConfigurationError("Config file not found at {}".format(path))
    with open(path, "r") as stream:
        try:
            config_data = yaml.safe_load(stream)
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Invalid config file {path}: {exc}") from exc
    if config_data is None:
        return {}
    if not isinstance(config_data, dict):
        raise ConfigurationError("Expected a mapping in {}, got {}".format(path, type(config_data)))
    for key, value in config_data.items():
        if key not in OPTION_NAMES:
            raise ConfigurationError(f"Unknown key '{key}' in {path}. Known keys: {', '.join(OPTION_NAMES)}")
        _check_type(key, value)
    module_logger.debug("Loaded config file at {}".format(path))
    return config_data

def get_environment_options() -> dict:
    options = {}
    for key, variable in ENVIRONMENT_VARIABLES.items():
        value = os.getenv(variable)
        if value is None or value.strip() == "":
            continue
        value = value.strip()
        if key == "build_id":
            try:
                value = int(value)
            except ValueError:
                raise ConfigurationError(f"{variable} must be a non-negative integer, got {value!r}") from None
        options[key] = _check_type(key, value)
        module_logger.debug(f"Using {variable}={value!r}")
    return options

def get_options(project_file=None, config_path=None, **overrides) -> UpdateOptions:
    """
    Merge the configuration file, the environment and ``overrides`` (in order of
    increasing precedence) into :py:class:`UpdateOptions`.

    Overrides that are None (or False for flags) count as not given.
    """
    options = UpdateOptions()
    path = find_config_path(project_file, config_path)
    if path is not None:
        options = replace(options, **load_config(path))
    options = replace(options, **get_environment_options())
    given = {}
    for key, value in overrides.items():
        if key not in OPTION_NAMES:
            raise TypeError(f"Unknown option '{key}'")
        if value is not None and value is not False:
            given[key] = _check_type(key, value)
    # A build id and a revision increment exclude each other, the explicitly given one wins.
    if "increment_revision" in given and "build_id" not in given:
        given["build_id"] = None
    elif "build_id" in given and "increment_revision" not in given:
        given["increment_revision"] = False
    return replace(options, **given)
