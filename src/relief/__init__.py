"""
Relief - terrain analysis engine for emergency response and routing.

This package turns sparse elevation samples over an area into terrain
metrics (elevation range, slope, aspect, roughness) and into accessibility
and flood-risk scores.
"""

__version__ = "0.1.0"
