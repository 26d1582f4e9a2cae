"""
HTML4 / XHTML content negotiation service
"""

__version__ = "1.0.0"
