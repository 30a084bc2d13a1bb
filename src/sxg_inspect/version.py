"""Version information for sxg-inspect"""

__version__ = "0.1.0"
