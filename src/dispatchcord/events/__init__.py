"""
Process-wide event bus used for error, warning and usage reporting.
"""
