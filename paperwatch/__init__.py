"""paperwatch: rolling, deduplicated catalog of research papers."""

__version__ = "1.0.0"
