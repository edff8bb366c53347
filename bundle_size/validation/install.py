"""Configuration options that affect a whole bundle size run"""

import logging

from bundle_size.validation.validator import BundleSizeConfigValidator

log = logging.getLogger(__name__)

COMMENT_STRATEGIES = ("always", "skip-insignificant")
SNAPSHOT_STORES = ("storage", "issue", "rebuild")

bundle_size_fields = {
    # threshold - minimum absolute change of the total size worth reporting
    "threshold": {"type": "integer", "coerce": "byte_size", "min": 0},
    "comment_strategy": {"type": "string", "allowed": list(COMMENT_STRATEGIES)},
    "base_branch": {"type": "string", "coerce": "branch_name", "empty": False},
    "working_directory": {"type": "string"},
    # build_directory - relative to working_directory, where the manifest lives
    "build_directory": {"type": "string", "empty": False},
    "install_command": {"type": "string", "coerce": "command"},
    "install_args": {"type": "string", "nullable": True},
    "build_command": {"type": "string", "coerce": "command"},
    # snapshot_store - how the base snapshot is obtained
    "snapshot_store": {"type": "string", "allowed": list(SNAPSHOT_STORES)},
    "storage_root": {"type": "string"},
    "repo_key": {"type": "string"},
}

github_fields = {
    "api_url": {"type": "string"},
    "verify_ssl": {"type": "boolean"},
    "bot": {
        "type": "dict",
        "schema": {"key": {"type": "string", "required": True}},
    },
}

config_schema = {
    "bundle_size": {"type": "dict", "schema": bundle_size_fields},
    "github": {"type": "dict", "schema": github_fields},
}


def validate_install_configuration(inputted_dict):
    validator = BundleSizeConfigValidator(allow_unknown=True)
    is_valid = validator.validate(inputted_dict, config_schema)
    if not is_valid:
        log.warning(
            "Configuration considered invalid, using dict as it is",
            extra=dict(errors=validator.errors),
        )
        return inputted_dict
    return validator.document
