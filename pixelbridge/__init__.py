"""
Pixel Bridge - converts uploaded images into pixel grids and publishes
them as a JSON drawing document to a GitHub repository.
"""

__version__ = "1.0.0"
