# ewaste/main.py

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import models  # noqa: F401  registers tables on Base.metadata
from .config import settings
from .database import Base, engine
from .errors import EwasteError
from .routers import admin, certificates, pickup, requests

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

# ────────────────────────────── LIFESPAN ──────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    yield
    engine.dispose()

app = FastAPI(
    title="Smart e-Waste Collection Service",
    description="E-waste pickup requests: review, scheduling, OTP verification and certificates",
    version="1.0.0",
    lifespan=lifespan
)

# ────────────────────────────── CORS ──────────────────────────────

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ────────────────────────────── ERRORS ──────────────────────────────

@app.exception_handler(EwasteError)
async def ewaste_error_handler(request: Request, exc: EwasteError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

# ────────────────────────────── ROUTES ──────────────────────────────

app.include_router(requests.router)
app.include_router(pickup.router)
app.include_router(certificates.router)
app.include_router(admin.router)


@app.get("/health")
def health():
    return {"status": "ok"}


def serve():
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)


if __name__ == "__main__":
    serve()
