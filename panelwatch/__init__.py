"""panelwatch - Zoom webinar panelist change detector"""
__version__ = "0.1.0"
