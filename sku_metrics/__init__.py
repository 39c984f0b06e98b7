"""
SKU Metrics - per-SKU performance analytics for a D2C store
"""
__version__ = "1.0.0"
