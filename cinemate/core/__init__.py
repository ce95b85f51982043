"""
Core recommendation logic: rate limiting, failure types and the bulk
recommendation pipeline.
"""
