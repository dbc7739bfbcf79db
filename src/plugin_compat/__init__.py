"""Plugin compatibility checker: build plugin repositories against a ref."""

__version__ = "1.0.0"
