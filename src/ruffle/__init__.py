"""Ruffle compiler front end: lexing, type-expression parsing and normalization."""

__version__ = "0.1.0"
