from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session
from workplan.core.database import get_db

router = APIRouter()

@router.get("/z")
def healthz(db: Session = Depends(get_db)):
    # Check si l'API et la base sont up
    db.execute(text("SELECT 1"))
    return {"status": "ok"}
