import json
import logging
from datetime import date, datetime

from bson import ObjectId
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from athletrack.config import CORS_ORIGINS, LOG_LEVEL
from athletrack.database import connection
from athletrack.database.repositories import ensure_indexes
from athletrack.errors import AppError
from athletrack.routers import badges, challenges, goals, insights, nutrition, records, recovery, workouts

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


# Custom JSON encoder for MongoDB ObjectId and datetime
class MongoJSONEncoder(json.JSONEncoder):
    def default(self, obj):
        if isinstance(obj, ObjectId):
            return str(obj)
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        return super().default(obj)


class MongoJSONResponse(JSONResponse):
    def render(self, content) -> bytes:
        return json.dumps(
            content,
            ensure_ascii=False,
            allow_nan=False,
            indent=None,
            separators=(",", ":"),
            cls=MongoJSONEncoder
        ).encode("utf-8")


app = FastAPI(title="AthleTrack API", version="1.0.0", default_response_class=MongoJSONResponse)

app.add_middleware(GZipMiddleware, minimum_size=1000)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AppError)
def _app_error(request: Request, exc: AppError):
    return MongoJSONResponse(status_code=exc.status_code, content={"detail": exc.detail, "fields": exc.fields})


app.include_router(workouts.router)
app.include_router(records.router)
app.include_router(goals.router)
app.include_router(badges.router)
app.include_router(challenges.router)
app.include_router(nutrition.router)
app.include_router(recovery.router)
app.include_router(insights.router)


@app.on_event("startup")
def _app_startup():
    # Unique indexes back the badge and invite-code guarantees (idempotent)
    if connection.db is None:
        logger.warning("Skipping index creation: database not available")
        return
    try:
        ensure_indexes(connection.db)
    except Exception as e:
        logger.warning(f"Could not ensure indexes: {e}")


@app.get("/")
def home():
    return {"message": "AthleTrack API Running"}


@app.get("/health")
def health_check():
    return {"status": "healthy", "database": connection.db is not None, "timestamp": datetime.utcnow()}
