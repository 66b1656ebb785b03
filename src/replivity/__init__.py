"""
Replivity - AI-assisted social reply generation service
"""

__version__ = "0.1.0"
