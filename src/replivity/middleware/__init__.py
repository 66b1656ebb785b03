"""
HTTP error handling middleware
"""
