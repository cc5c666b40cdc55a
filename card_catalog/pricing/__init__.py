"""Pricing package for representative market prices."""

from .normalize import extract_price, median

__all__ = ["extract_price", "median"]
