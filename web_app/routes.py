import os

from fastapi import APIRouter, Form, HTTPException, Request
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.templating import Jinja2Templates
from pydantic import BaseModel

from flat_db.errors import InvalidTable, QueryError
from flat_db.logger import get_logger
from flat_db.query import execute_query, select_tables
from flat_db.sql_parser import parse
from web_app.main import db_instance as db

logger = get_logger(__name__)

router = APIRouter()

# Templates
templates = Jinja2Templates(
    directory=os.path.join(os.path.dirname(os.path.abspath(__file__)), "templates")
)


class QueryRequest(BaseModel):
    query: str


def run_query(query):
    """
    Parse and execute one statement.
    Returns (command type, SELECT result blocks); write commands give no blocks.
    """
    parsed = parse(query)
    if parsed["type"] == "SELECT":
        return parsed["type"], select_tables(parsed, db)
    execute_query(parsed, db)
    return parsed["type"], []


def table_names():
    try:
        return db.list_tables()
    except InvalidTable:
        return []


# HOME / QUERY CONSOLE

@router.get("/", response_class=HTMLResponse)
async def index(request: Request):
    return templates.TemplateResponse(
        request,
        "index.html",
        {"tables": table_names(), "query": "", "results": [], "message": None, "error": None}
    )


@router.post("/", response_class=HTMLResponse)
async def run_console_query(request: Request, query: str = Form(...)):
    results = []
    message = None
    error = None

    try:
        query_type, results = run_query(query)
        if query_type != "SELECT":
            message = f"{query_type} executed successfully."
    except QueryError as e:
        logger.warning("Console query failed: %s", e)
        error = str(e)

    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "tables": table_names(),
            "query": query,
            "results": results,
            "message": message,
            "error": error,
        },
        status_code=400 if error else 200
    )


# JSON API

@router.post("/api/query")
async def api_query(payload: QueryRequest):
    try:
        query_type, results = run_query(payload.query)
    except QueryError as e:
        logger.warning("API query failed: %s", e)
        return JSONResponse(
            status_code=400,
            content={"status": "error", "kind": e.kind, "message": e.message}
        )

    return {"status": "success", "type": query_type, "results": results}


@router.get("/tables")
async def list_tables():
    return {"tables": table_names()}


@router.get("/tables/{table_name}")
async def get_table(table_name: str):
    try:
        table = db.get_table(table_name)
    except QueryError as e:
        return JSONResponse(
            status_code=400,
            content={"status": "error", "kind": e.kind, "message": e.message}
        )

    if table is None:
        raise HTTPException(status_code=404, detail=f"Table '{table_name}' does not exist")

    return {"table": table_name, "columns": table["columns"], "rows": table["rows"]}
