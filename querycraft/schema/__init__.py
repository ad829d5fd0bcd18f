"""querycraft schema types: bindable values, record descriptors, result models."""
from querycraft.schema.records import (
    RecordDescriptor,
    decode_record,
    describe,
    is_record,
    register_record,
)
from querycraft.schema.results import ExecResult, KeysetPaginationResult, PaginationResult
from querycraft.schema.values import SQLValue, format_arg, inline_args, is_scalar, normalize_row

__all__ = [
    "ExecResult",
    "KeysetPaginationResult",
    "PaginationResult",
    "RecordDescriptor",
    "SQLValue",
    "decode_record",
    "describe",
    "format_arg",
    "inline_args",
    "is_record",
    "is_scalar",
    "normalize_row",
    "register_record",
]
