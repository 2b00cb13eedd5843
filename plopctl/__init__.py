"""plopctl — discover and drive a project's Plop generators."""

__version__ = "0.1.0"
