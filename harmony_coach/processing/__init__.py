"""Processing layer - Note-level post-processing.

This layer refines extracted notes:
- Quantization (snap beat positions to a grid)
"""

from .quantize import Quantizer

__all__ = [
    "Quantizer",
]
