"""Photo Draw: raster stroke images → editable vector ink.

This package converts photographs or scans of handwriting and line drawings
into vector paths that behave like natively drawn ink.

Architecture layers (strict one-way dependency):
    scripts/ → photo_draw/vectorization/ → photo_draw/utils/

Key invariants:
    - Pixel coordinates are integer (x, y), image frame (top-left, +Y down)
    - Paths leave the core in pixel units; placement into canvas points
      happens once in ImageConversion
    - Colors are RGBA floats in [0, 1]
    - YAML-only configs, schema-versioned
    - Output is deterministic for a fixed seed
"""

__version__ = "1.0.0"
