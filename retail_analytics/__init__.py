"""
Retail BI Analytics
"""
__version__ = "1.0.0"
