"""Backend for a metal wall-art storefront: catalog with color/size variations, checkout and content admin."""

__version__ = "1.0.0"
