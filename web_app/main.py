import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from flat_db.database import Database
from flat_db.errors import InvalidTable
from flat_db.logger import get_logger

logger = get_logger(__name__)

# database instance
db_instance = Database()

app = FastAPI(
    title="flat-db Web Interface",
    description="SQL-like queries over a directory of flat text tables",
    version="1.0.0"
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Import and include routes AFTER defining db_instance
from web_app.routes import router  # noqa: E402
app.include_router(router)


@app.on_event("startup")
async def startup_event():
    os.makedirs(db_instance.path, exist_ok=True)
    try:
        tables = db_instance.list_tables()
    except InvalidTable:
        tables = []
    logger.info("Serving %d table(s) from '%s'", len(tables), db_instance.path)


# Simple API home
@app.get("/info")
def info():
    return {
        "message": "flat-db query API",
        "database": db_instance.path,
        "endpoints": {
            "console": "/",
            "query": "/api/query",
            "tables": "/tables",
            "table": "/tables/{name}"
        }
    }


def run():
    import uvicorn

    from flat_db.config import get_server_config

    config = get_server_config()
    uvicorn.run("web_app.main:app", host=config["host"], port=config["port"])


if __name__ == "__main__":
    run()
