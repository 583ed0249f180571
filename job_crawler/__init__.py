"""Schema-driven job board crawler."""

__version__ = "0.1.0"
