"""
SidVid HTTP API
"""
