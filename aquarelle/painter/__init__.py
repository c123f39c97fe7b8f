"""Per-pixel watercolor painter.

Modules (leaf-first):
    - prng: PCG integer hashing, key derivation
    - noise: lattice value noise, fBm, turbulence, cellular
    - warp: two-level feedback domain warp
    - shapes: SDF primitives, smooth merge, flower shape, Bézier stems
    - pigment: palette, chromatic separation, glaze/ink operators
    - wash: flower wash, splotch and abstract wash evaluators
    - marks: ink stems and center marks
    - layout: seed → layer descriptors
    - compositor: WatercolorRenderer (fold over layers, band harness)

Invariants:
    - Every function below compositor is pure and elementwise
    - Randomness enters only through explicit integer keys
    - Coordinates: y ∈ [-1, 1] (+y up), x ∈ [-aspect, aspect]

Used by:
    - scripts/render_seed.py: CLI rendering and metadata export
    - tests/: determinism, bounds, golden fixture
"""
