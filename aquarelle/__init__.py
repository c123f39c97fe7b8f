"""Aquarelle: seed-driven procedural watercolor synthesis.

This package turns a scalar seed into a reproducible watercolor painting:
paper, loose background washes, backrun splotches, floral washes, ink stems
and center marks, paper grain and a vignette, all evaluated per pixel.

Architecture layers (strict one-way dependency):
    scripts/ → aquarelle/painter/ → aquarelle/utils/

Key invariants:
    - Same (seed, width, height) at time=0 → identical image
    - Every layer parameter is a pure function of (seed, salt, index)
    - No shared mutable state; any pixel can be evaluated in isolation
    - Images are display RGB [0,1], fully opaque
"""

__version__ = "1.0.0"
