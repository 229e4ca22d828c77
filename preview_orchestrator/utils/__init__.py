"""Utility modules for the preview orchestrator."""

from .resource_naming import ResourceNameCollision
from .size_parsing import (
    DEFAULT_STORAGE_SIZE,
    InvalidSizeFormat,
    parse_memory_limit,
    parse_storage_size,
)

__all__ = [
    'DEFAULT_STORAGE_SIZE',
    'InvalidSizeFormat',
    'ResourceNameCollision',
    'parse_memory_limit',
    'parse_storage_size',
]
