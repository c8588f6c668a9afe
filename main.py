from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import config
from database.conexion import Base, engine
import models  # registra todos los modelos en Base.metadata
from services.status_scheduler import ReservationStatusScheduler
from utils.error_handlers import register_exception_handlers
from utils.logging_utils import get_logger
from utils.rate_limiter import setup_rate_limiting

logger = get_logger("main")

Base.metadata.create_all(bind=engine)
logger.info("Tablas creadas (o ya existían)")

status_scheduler = ReservationStatusScheduler()


@asynccontextmanager
async def lifespan(app: FastAPI):
    if config.SCHEDULER_ENABLED:
        status_scheduler.start()
    else:
        logger.info("Scheduler de estados deshabilitado (SCHEDULER_ENABLED=false)")
    if not config.EMAIL_ENABLED:
        logger.warning("EMAIL_HOST vacío: los emails se loguean y se omiten")
    yield
    status_scheduler.stop()


app = FastAPI(title="Miami Get Away API", debug=config.ENVIRONMENT == "development", lifespan=lifespan)
app.state.status_scheduler = status_scheduler

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

setup_rate_limiting(app)
register_exception_handlers(app)

from endpoints import auth, reservations, reservation_payments, cron, summaries
app.include_router(auth.router, prefix="/api")
app.include_router(reservations.router, prefix="/api")
app.include_router(reservation_payments.router, prefix="/api")
app.include_router(cron.router, prefix="/api")
app.include_router(summaries.router, prefix="/api")


@app.get("/")
def read_root():
    return {"message": "Miami Get Away API", "environment": config.ENVIRONMENT}
