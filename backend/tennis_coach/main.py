import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tennis_coach.config import get_cors_origins, get_log_level
from tennis_coach.database import init_db
from tennis_coach.routes import team_matches, teams, tournaments

logging.basicConfig(
    level=get_log_level(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Tennis Coach API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(teams.router, prefix="/api", tags=["teams"])
app.include_router(tournaments.router, prefix="/api", tags=["tournaments"])
app.include_router(team_matches.router, prefix="/api", tags=["team-matches"])


@app.on_event("startup")
def on_startup():
    init_db()  # Creates tables for every model in tennis_coach.models
    logger.info("Registered %d routes", len(app.routes))


@app.get("/api/health")
def health_check():
    return {"app_name": "Tennis Coach API", "status": "healthy"}
