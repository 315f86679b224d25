"""Version information for the NetSuite REST Python client"""

__version__ = "0.1.0"
