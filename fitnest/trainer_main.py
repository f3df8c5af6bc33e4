from fastapi import FastAPI

from fitnest.config import configure_logging
from fitnest.database import Base, engine
from fitnest.trainer_routes import router

configure_logging()

app = FastAPI(title="FitNest Trainer Service")

app.include_router(router)

Base.metadata.create_all(bind=engine)


@app.get("/health")
def health():
    return {"status": "ok", "service": "trainer"}
