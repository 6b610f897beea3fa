"""
prismgl - discovery and configuration sync for the PrismGL renderer plugin
"""

__version__ = "1.0.0"
__logo__ = "◆"
