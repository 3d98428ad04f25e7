import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from auth import router as auth_router
from camps import router as camps_router
from core import config, db
from core.klout import KloutClient
from core.twitter import TwitterClient
from handles import router as handles_router
from scores.refresh import ScoreRefreshJob, refresh_interval_s
from topics import router as topics_router
from tweets import router as tweets_router
from users import router as users_router

logging.basicConfig(
    level=config.log_level(),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # DB pool and adapters are created once per process.
    await db.init_pool()
    app.state.klout_client = KloutClient.from_env()
    app.state.twitter_client = TwitterClient.from_env()
    refresh_job = ScoreRefreshJob(klout=app.state.klout_client, interval_s=refresh_interval_s())
    app.state.score_refresh_job = refresh_job
    refresh_job.start()
    try:
        yield
    finally:
        await refresh_job.stop()
        await db.close_pool()


app = FastAPI(title="handle-dashboard", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _validation_message(errors: list[dict]) -> str:
    if not errors:
        return "Invalid request."
    first = errors[0]
    loc = [str(part) for part in first.get("loc", ()) if part not in ("query", "body", "path", "form")]
    field = ".".join(loc) or "request"
    return f'invalid "{field}": {first.get("msg", "is invalid")}'


@app.exception_handler(RequestValidationError)
async def validation_error_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    # Malformed input is a 400 here, not FastAPI's default 422.
    errors = exc.errors()
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_encoder(errors), "message": _validation_message(errors)},
    )


app.include_router(auth_router.router, tags=["auth"])
app.include_router(users_router.router, tags=["users"])
app.include_router(camps_router.router, tags=["camps"])
app.include_router(handles_router.router, tags=["handles"])
app.include_router(topics_router.router, tags=["topics"])
app.include_router(tweets_router.router, tags=["tweets"])


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


@app.get("/")
def root() -> dict:
    return {"message": "handle-dashboard api"}
