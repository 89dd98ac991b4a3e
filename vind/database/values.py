"""
Scalar value model for result rows

Drivers return whatever native Python type matches the column. Rows keep
those values but pass through normalize_value, which folds driver-specific
containers (psycopg2 returns bytea as memoryview) into the closed set of
kinds below. Anything outside the set stays as-is and is classified OTHER.
"""

import base64
import datetime
import math
import uuid
from decimal import Decimal
from enum import Enum
from typing import Any


class ValueKind(Enum):
    """Kinds of scalar a result cell can hold"""
    NULL = "null"
    INTEGER = "integer"
    FLOAT = "float"
    TEXT = "text"
    BOOLEAN = "boolean"
    BINARY = "binary"
    OTHER = "other"


def classify_value(value: Any) -> ValueKind:
    """Map a normalized value onto its ValueKind"""
    if value is None:
        return ValueKind.NULL
    # bool is a subclass of int, check it first
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, int):
        return ValueKind.INTEGER
    if isinstance(value, float):
        return ValueKind.FLOAT
    if isinstance(value, str):
        return ValueKind.TEXT
    if isinstance(value, (bytes, bytearray, memoryview)):
        return ValueKind.BINARY
    return ValueKind.OTHER


def normalize_value(value: Any) -> Any:
    """Convert a driver-native cell into the row model"""
    if isinstance(value, (memoryview, bytearray)):
        return bytes(value)
    return value


def to_json_value(value: Any) -> Any:
    """Render a row value for a JSON response"""
    kind = classify_value(value)
    if kind is ValueKind.BINARY:
        return base64.b64encode(bytes(value)).decode('ascii')
    if kind is ValueKind.FLOAT and not math.isfinite(value):
        # JSON has no NaN or Infinity literals
        if math.isnan(value):
            return "NaN"
        return "Infinity" if value > 0 else "-Infinity"
    if kind is not ValueKind.OTHER:
        return value

    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
        return value.isoformat()
    if isinstance(value, datetime.timedelta):
        return value.total_seconds()
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, dict):
        return {k: to_json_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json_value(v) for v in value]
    return str(value)
