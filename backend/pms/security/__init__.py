"""
pms.security - bearer token actor resolution
"""
