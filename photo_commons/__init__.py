"""
Shared library for the photo-service Lambda functions
"""
__version__ = "1.0.0"
