"""Taichi runtime initialization.

All kernels work in double precision, so Taichi must be initialized with
``default_fp=ti.f64`` before any rtweekend module that declares fields is
imported. Backends without f64 support (e.g. Metal) cannot run the renderer.
"""

import taichi as ti

ARCH_CHOICES = ("auto", "cpu", "gpu", "cuda", "vulkan")


def init_taichi(
    arch: str = "auto",
    seed: int | None = None,
    threads: int | None = None,
) -> str:
    """Initialize the Taichi runtime for rendering.

    Args:
        arch: Backend to use. "auto" tries the GPU first and falls back to
            the CPU. Giving ``threads`` with "auto" selects the CPU.
        seed: Seed for the per-thread random states. A single-threaded CPU
            run with a fixed seed is reproducible.
        threads: Maximum number of CPU threads (CPU backend only).

    Returns:
        The name of the backend that was initialized ("cpu" or "gpu" and so on).

    Raises:
        ValueError: If arch is unknown or threads is not positive.
    """
    if arch not in ARCH_CHOICES:
        raise ValueError(f"Unknown arch {arch!r}, expected one of {', '.join(ARCH_CHOICES)}")
    if threads is not None and threads < 1:
        raise ValueError(f"threads must be at least 1, got {threads}")

    kwargs = {"default_fp": ti.f64}
    if seed is not None:
        kwargs["random_seed"] = int(seed)
    if threads is not None:
        kwargs["cpu_max_num_threads"] = int(threads)

    if arch == "auto" and threads is None:
        # Use GPU if available, fall back to CPU
        try:
            ti.init(arch=ti.gpu, **kwargs)
            return "gpu"
        except Exception:
            ti.init(arch=ti.cpu, **kwargs)
            return "cpu"

    if arch == "auto":
        arch = "cpu"
    ti.init(arch=getattr(ti, arch), **kwargs)
    return arch
