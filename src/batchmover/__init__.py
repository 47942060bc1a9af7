"""Batch File Mover: group files, rename them and move them into destination folders."""

__version__ = "0.3.0"
