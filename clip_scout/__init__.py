# clip_scout/__init__.py
"""
ClipScout package initializer.
Defines package version.
"""
__version__ = "0.1.0"
