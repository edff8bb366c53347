import logging
import re
from typing import Any

log = logging.getLogger(__name__)


class Invalid(Exception):
    def __init__(self, error_message):
        super().__init__()
        self.error_message = error_message


class ByteSizeSchemaField(object):
    """Converts a string with a byte size extension into a number of bytes.
    Acceptable extensions are 'gb', 'mb', 'kb', 'b' and 'bytes' (case insensitive).
    Multiples are binary, matching how sizes are rendered in reports.
    Also accepts integers, returning the value itself as the number of bytes.

    Example:
        100 -> 100
        "100b" -> 100
        "2 kb" -> 2048
        "1MB" -> 1048576
    """

    extension_multiplier = {
        "b": 1,
        "bytes": 1,
        "kb": 1024,
        "mb": 1024**2,
        "gb": 1024**3,
    }

    def _validate_str(self, data: str) -> int:
        data = data.strip().lower()
        regex = re.compile(r"^(\d+)\s*(gb|mb|kb|b|bytes)?$")
        match = regex.match(data)
        if match is None:
            raise Invalid(
                "Value doesn't match expected regex. "
                "Acceptable extensions are gb, mb, kb, b or bytes"
            )
        size, extension = match.groups()
        return int(size) * self.extension_multiplier[extension or "b"]

    def validate(self, data: Any) -> int:
        if isinstance(data, bool):
            raise Invalid("Value should be int or str. Received bool")
        if isinstance(data, int):
            return data
        if isinstance(data, str):
            return self._validate_str(data)
        raise Invalid(f"Value should be int or str. Received {type(data).__name__}")


class CommandSchemaField(object):
    """
    Normalizes a shell-like command given either as a string or as a list of arguments
    into a single string (later split with shlex).
    """

    def validate(self, data: Any) -> str:
        if isinstance(data, str):
            return data.strip()
        if isinstance(data, list) and all(isinstance(item, str) for item in data):
            return " ".join(data)
        raise Invalid("Command should be a string or a list of strings")
