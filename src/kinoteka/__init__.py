"""Kinoteka: state layer for a browser movie catalog backed by a hosted store."""

__version__ = "0.1.0"
