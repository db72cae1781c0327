"""Cross-cutting utilities (lowest dependency layer).

This package provides shared primitives for:
    - Config validation (validators)
    - Color science and ink palette (color)
    - Bézier geometry (geometry)
    - Atomic I/O (fs)
    - Profiling (profiler)
    - Unified logging (logging_config)

No module in utils/ may import from photo_draw.vectorization.

Convenience imports:
    from photo_draw.utils import fs, color, validators
    from photo_draw.utils.logging_config import setup_logging, get_logger
"""

from . import color
from . import fs
from . import geometry
from . import logging_config
from . import profiler
from . import validators

from .logging_config import get_logger, push_context, setup_logging

__all__ = [
    # Modules
    'color',
    'fs',
    'geometry',
    'logging_config',
    'profiler',
    'validators',
    # Direct exports
    'setup_logging',
    'get_logger',
    'push_context',
]
