"""
pms - application layer of the reservation lifecycle engine

SQLAlchemy stores, billing, notification channels, the APScheduler backend
and the FastAPI routers that expose the lifecycle engine.
"""
