import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app import models
from app.config import CORS_ORIGINS, LOG_LEVEL
from app.db import engine
from app.exceptions import register_exception_handlers
from app.routers import auth, contacts, favorites, tags

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    models.Base.metadata.create_all(bind=engine)
    logger.info("Contacts API started")
    yield
    logger.info("Contacts API stopped")


app = FastAPI(title="Contact Manager API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(auth.router)
app.include_router(contacts.router)
app.include_router(favorites.router)
app.include_router(tags.router)


@app.get("/", tags=["Root"])
def root():
    return {
        "message": "Welcome to Contact Manager API",
        "documentation": "/docs",
        "authenticationRequired": "Most endpoints require a bearer token",
        "howToAuthenticate": {
            "step1": "Register at POST /auth/register",
            "step2": "Login at POST /auth/login to get a token",
            "step3": "Send it as 'Authorization: Bearer <token>'",
        },
    }
