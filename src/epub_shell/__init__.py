__version__ = "2026.10.18"
__license__ = "GPL-3.0"
