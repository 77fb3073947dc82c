"""mdsite: front-matter driven static site generator"""

__version__ = "0.1.0"
