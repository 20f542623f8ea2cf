"""
pms.models - ORM objects and API schemas
"""
