from fastapi import FastAPI, Depends, status
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session
from .db import engine, get_session
from . import models, reconcile
from .errors import install_error_handlers
from .log import setup_logging
from .schemas import ActivityCreate, ActivityResponse
from .security import current_user_id
from .sessions import router as sessions_router
from .strava_routes import router as strava_router

setup_logging()

models.Base.metadata.create_all(bind=engine)

app = FastAPI(title="Running Log API")
app.include_router(strava_router)
app.include_router(sessions_router)
install_error_handlers(app)

app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])

@app.get("/health")
async def health():
    return {"status": "ok"}

@app.get("/activities", response_model=list[ActivityResponse])
def list_activities(
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_session),
):
    return reconcile.list_activities(db, user_id)

@app.post("/activities", response_model=ActivityResponse, status_code=status.HTTP_201_CREATED)
def create_activity(
    payload: ActivityCreate,
    user_id: str = Depends(current_user_id),
    db: Session = Depends(get_session),
):
    return reconcile.create_activity(db, user_id, payload)
