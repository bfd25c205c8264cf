"""INF Platform backend: interview slot scheduling and booking."""

__version__ = "0.1.0"
