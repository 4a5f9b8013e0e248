"""
Core connection handling shared by the backing services.
"""
