from fastapi import FastAPI
from baken.logging_config import configure_logging
from baken.routers import bets, settlements

configure_logging()

app = FastAPI()

app.include_router(bets.router, prefix="/api")
app.include_router(settlements.router, prefix="/api")


@app.get("/")
def health_check():
    return {"status": "ok", "message": "Baken engine is running."}
