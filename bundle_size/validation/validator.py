from cerberus import Validator

from bundle_size.validation.helpers import ByteSizeSchemaField, CommandSchemaField


class BundleSizeConfigValidator(Validator):
    def _normalize_coerce_byte_size(self, value):
        return ByteSizeSchemaField().validate(value)

    def _normalize_coerce_command(self, value):
        return CommandSchemaField().validate(value)

    def _normalize_coerce_branch_name(self, value: str) -> str:
        # "origin/main" and "refs/heads/main" both name the branch "main"
        if value.startswith("refs/heads/"):
            return value[len("refs/heads/") :]
        if value.startswith("origin/"):
            return value[len("origin/") :]
        return value
