"""
PMS lifecycle application entry point
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pms.config import settings
from pms.database import SessionLocal, init_db
from pms.routers import day_roll, reservation_status
from pms.services.engine_factory import build_engine, set_engine
from pms.services.scheduler_backend import APSchedulerBackend

logger = logging.getLogger(__name__)


def _property_ids():
    from pms.models.ontology import Property
    db = SessionLocal()
    try:
        return [pid for (pid,) in db.query(Property.id).order_by(Property.id).all()]
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: database, engine and automation jobs"""
    init_db()

    backend = APSchedulerBackend()
    engine = build_engine(SessionLocal, backend=backend)
    set_engine(engine)

    if settings.AUTOMATION_ENABLED:
        try:
            engine.scheduler.start(
                _property_ids(),
                settings.AUTOMATION_INTERVAL_SECONDS,
                property_source=_property_ids,
                refresh_seconds=settings.AUTOMATION_PROPERTY_REFRESH_SECONDS,
            )
            backend.start()
        except Exception as e:
            logger.error(f"Automation could not be started: {e}", exc_info=True)

    yield

    engine.shutdown()
    backend.shutdown()
    set_engine(None)


app = FastAPI(
    title=settings.APP_NAME,
    description="Reservation status lifecycle, automation and day-roll checks",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(reservation_status.router)
app.include_router(day_roll.router)


@app.get("/health")
def health_check():
    return {"status": "healthy"}
