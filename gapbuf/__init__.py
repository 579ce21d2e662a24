"""Gap storage for UTF-8 text, text metrics, and the nodes of a metrics B-tree."""

__version__ = "0.1.0"