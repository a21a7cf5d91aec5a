from fastapi import FastAPI
from workplan.core.database import engine, Base
from workplan.core.logs import setup_logging
from workplan.routers import health, tasks

setup_logging()

# Init DB
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="WorkPlan API",
    version="1.0.0"
)

# Routes
app.include_router(health.router, prefix="/api/health")
app.include_router(tasks.router, prefix="/api")
