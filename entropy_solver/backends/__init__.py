"""
Scoring backends. All three share the score(guesses, candidates, timeout)
contract and differ only in how the work is executed.
"""

from .accelerator import AcceleratorBackend
from .base import Backend, Deadline
from .scalar import ScalarBackend
from .vector import VectorBackend


BACKENDS = {
    ScalarBackend.name: ScalarBackend,
    VectorBackend.name: VectorBackend,
    AcceleratorBackend.name: AcceleratorBackend,
}


def get_backend(name, **options):
    """Build a backend by name, passing options to its constructor."""
    try:
        backend_cls = BACKENDS[name]
    except KeyError:
        choices = ", ".join(sorted(BACKENDS))
        raise ValueError(f"unknown backend {name!r} (choose from {choices})") from None
    return backend_cls(**options)


__all__ = [
    "AcceleratorBackend",
    "BACKENDS",
    "Backend",
    "Deadline",
    "ScalarBackend",
    "VectorBackend",
    "get_backend",
]
