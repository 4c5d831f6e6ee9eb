"""
CivicEye AI - REST API
"""
