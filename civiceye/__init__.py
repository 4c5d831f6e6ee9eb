"""
CivicEye AI
Citizen issue reporting with AI classification and an authority review workflow.
"""

__version__ = "0.1.0"
