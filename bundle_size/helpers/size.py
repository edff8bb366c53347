SIZE_UNITS = ("B", "KB", "MB", "GB")
SIZE_BASE = 1024


def format_bytes(size: int) -> str:
    """
    Renders a byte count in the largest unit (B, KB, MB or GB, base 1024) that keeps
    the magnitude at or above 1, with a single fractional digit.

        format_bytes(0) == "0 B"
        format_bytes(1536) == "1.5 KB"
        format_bytes(-2048) == "-2.0 KB"
    """
    if size == 0:
        return "0 B"
    magnitude = abs(size)
    exponent = 0
    while exponent < len(SIZE_UNITS) - 1 and magnitude >= SIZE_BASE ** (exponent + 1):
        exponent += 1
    sign = "-" if size < 0 else ""
    return f"{sign}{magnitude / SIZE_BASE**exponent:.1f} {SIZE_UNITS[exponent]}"


def format_size_delta(delta: int) -> str:
    """Same as `format_bytes`, with an explicit "+" for growth"""
    if delta > 0:
        return f"+{format_bytes(delta)}"
    return format_bytes(delta)
