"""quire: a small static-site generator for blogs and documentation sites."""

__version__ = "0.1.0"
