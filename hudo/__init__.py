"""hudo — developer toolchain bootstrapper."""

__version__ = "0.4.0"
