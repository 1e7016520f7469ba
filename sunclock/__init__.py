"""Sun-following wall clock with DDC/CI monitor brightness and power control."""

__version__ = "1.0.0"
__all__ = ["__version__"]