"""rtweekend: a Taichi-accelerated Monte Carlo ray tracer.

Renders scenes of spheres under an infinite background with diffuse, metal
and glass materials, using a thin-lens camera with optional depth of field.

Package layout:
    core: Rays, colours, the integrator and progressive rendering
    geometry: Sphere and background intersection
    materials: Gradient, solid colour, Lambertian, metal and dielectric
    camera: Thin-lens camera and primary ray generation
    scene: Geometry table, scene manager, stock scenes and JSON files
    output: Gamma, quantization and PNG export
    runtime: Taichi initialization
    cli: The ``rtweekend`` command

Call ``rtweekend.runtime.init_taichi()`` before importing the subpackages,
which declare Taichi fields at import time.
"""

__version__ = "0.1.0"
