"""
REST API for the Cinemate recommendation service.
"""
