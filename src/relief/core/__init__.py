"""
Core services: configuration, errors, logging, storage and terrain analysis.
"""
