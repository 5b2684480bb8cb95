"""
corewright - application foundation: container, service providers and HTTP
middleware resolution.
"""

__app_name__ = "corewright"
__version__ = "0.1.0"
