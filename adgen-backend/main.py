import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from config import CORS_ORIGINS
from database import get_db, init_db
from routers import jobs

# --------------------------------------------------------------------------
# --- Configuration & Setup ---
# --------------------------------------------------------------------------

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


app = FastAPI(
    title="Product Ad Image Generator",
    description="Turns a product page URL into an AI-generated advertising image.",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(jobs.router)


# --------------------------------------------------------------------------
# --- API Endpoints ---
# --------------------------------------------------------------------------

@app.get("/")
def read_root():
    return {"status": "🚀 Ad Image Generator is running!"}


@app.get("/health")
def health(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
        database = "ok"
    except SQLAlchemyError as e:
        logging.error(f"Health check could not reach the database: {e}")
        database = "error"
    return {"status": "ok", "database": database}
