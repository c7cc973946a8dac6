"""Shared library registry with pluggable SCM retrievers."""

__version__ = "0.1.0"
