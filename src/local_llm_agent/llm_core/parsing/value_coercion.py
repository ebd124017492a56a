"""Syntactic coercion of tool-call parameter values."""

import json
import re

from ..tools.models import ParameterValue

_NUMBER_PATTERN = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_INTEGER_PATTERN = re.compile(r"[+-]?\d+")


def coerce_value(raw: str) -> ParameterValue:
    """Coerce a raw parameter value into the closest JSON-like Python value.

    Rules are applied in order on the stripped value:

    1. decimal numeric literal -> ``int`` or ``float``
    2. ``true`` / ``false`` (any case) -> ``bool``
    3. wrapped in matching ``"`` or ``'`` quotes -> ``str`` without the quotes
    4. starts with ``[`` or ``{`` -> ``json.loads`` result, raw string when that fails
    5. anything else -> the string itself

    The function never raises.
    """
    value = raw.strip()

    if _NUMBER_PATTERN.fullmatch(value):
        if _INTEGER_PATTERN.fullmatch(value):
            try:
                return int(value)
            except ValueError:
                # beyond the interpreter's integer digit limit
                return value
        number = float(value)
        # "1e999" overflows to inf and is not a usable number
        if number not in (float("inf"), float("-inf")):
            return number
        return value

    lowered = value.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False

    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]

    if value.startswith(("[", "{")):
        try:
            return json.loads(value)
        except (ValueError, RecursionError):
            return value

    return value
