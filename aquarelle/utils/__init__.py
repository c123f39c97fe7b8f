"""Cross-cutting utilities (lowest dependency layer).

This package provides shared primitives for:
    - Config validation (validators)
    - Shading helpers, banding & finiteness guards (compute)
    - Palette/quantization color helpers (color)
    - Atomic I/O (fs)
    - Golden-fixture metrics (metrics)
    - Profiling (profiler)
    - Hashing for provenance (hashing)
    - Unified logging (logging_config)

No module in utils/ may import from aquarelle.painter.

Convenience imports:
    from aquarelle.utils import fs, compute, color, validators
    from aquarelle.utils.logging_config import setup_logging, get_logger
"""

from . import color
from . import compute
from . import fs
from . import hashing
from . import logging_config
from . import metrics
from . import profiler
from . import validators

from .logging_config import get_logger, log_context, push_context, setup_logging

__all__ = [
    'color',
    'compute',
    'fs',
    'hashing',
    'logging_config',
    'metrics',
    'profiler',
    'validators',
    'setup_logging',
    'get_logger',
    'push_context',
    'log_context',
]
