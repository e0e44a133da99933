"""
Utility modules: configuration, logging, metrics and text processing.
"""
