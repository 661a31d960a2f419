"""Process registry for supervised child processes."""

from .local import ProcessRegistry

__all__ = [
    "ProcessRegistry",
]
