"""Authenticated CRUD and CSV import over the admin tables."""

from __future__ import annotations

import logging
import secrets
import sqlite3
from typing import Any, Dict, Iterator

from fastapi import APIRouter, Body, Depends, File, HTTPException, UploadFile, status
from fastapi.responses import JSONResponse
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from vacciprofile import database
from vacciprofile.api.schemas import ImportResult, RowsResponse, TableInfo, TablesResponse
from vacciprofile.config import settings

router = APIRouter(prefix="/admin", tags=["admin"])
logger = logging.getLogger(__name__)

security = HTTPBasic()


def require_admin(credentials: HTTPBasicCredentials = Depends(security)) -> str:
    if not settings.ADMIN_PASSWORD:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Admin is disabled: no ADMIN_PASSWORD configured",
        )
    user_ok = secrets.compare_digest(
        credentials.username.encode("utf8"), settings.ADMIN_USERNAME.encode("utf8")
    )
    pass_ok = secrets.compare_digest(
        credentials.password.encode("utf8"), settings.ADMIN_PASSWORD.encode("utf8")
    )
    if not (user_ok and pass_ok):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Basic"},
        )
    return credentials.username


def get_db() -> Iterator[sqlite3.Connection]:
    """One connection per request, closed when the response is done."""
    conn = database.connect()
    try:
        yield conn
    finally:
        conn.close()


def _error(exc: Exception) -> JSONResponse:
    code = getattr(exc, "status_code", status.HTTP_400_BAD_REQUEST)
    return JSONResponse(status_code=code, content={"error": str(exc), "type": type(exc).__name__})


@router.get("/tables", response_model=TablesResponse)
def tables(_: str = Depends(require_admin)):
    return TablesResponse(
        tables=[
            TableInfo(
                name=name,
                id_column=spec["id"],
                columns=list(spec["columns"]),
                required=spec["required"],
                booleans=spec["booleans"],
            )
            for name, spec in database.TABLES.items()
        ]
    )


@router.get("/{table}", response_model=RowsResponse)
def list_rows(
    table: str,
    conn: sqlite3.Connection = Depends(get_db),
    _: str = Depends(require_admin),
):
    try:
        rows = database.list_rows(conn, table)
    except (database.AdminError, sqlite3.Error) as exc:
        logger.exception("list %s failed", table)
        return _error(exc)
    return RowsResponse(table=table, rows=rows, count=len(rows))


@router.post("/{table}", status_code=status.HTTP_201_CREATED)
def create_row(
    table: str,
    conn: sqlite3.Connection = Depends(get_db),
    values: Dict[str, Any] = Body(...),
    _: str = Depends(require_admin),
):
    try:
        return database.insert_row(conn, table, values)
    except (database.AdminError, sqlite3.Error) as exc:
        logger.exception("insert into %s failed", table)
        return _error(exc)


@router.put("/{table}/{row_id}")
def update_row(
    table: str,
    row_id: int,
    conn: sqlite3.Connection = Depends(get_db),
    values: Dict[str, Any] = Body(...),
    _: str = Depends(require_admin),
):
    try:
        return database.update_row(conn, table, row_id, values)
    except (database.AdminError, sqlite3.Error) as exc:
        logger.exception("update %s/%s failed", table, row_id)
        return _error(exc)


@router.delete("/{table}/{row_id}")
def delete_row(
    table: str,
    row_id: int,
    conn: sqlite3.Connection = Depends(get_db),
    _: str = Depends(require_admin),
):
    try:
        database.delete_row(conn, table, row_id)
    except (database.AdminError, sqlite3.Error) as exc:
        logger.exception("delete %s/%s failed", table, row_id)
        return _error(exc)
    return {"deleted": row_id}


@router.post("/{table}/upload", response_model=ImportResult)
async def upload_csv(
    table: str,
    conn: sqlite3.Connection = Depends(get_db),
    file: UploadFile = File(...),
    _: str = Depends(require_admin),
):
    content = await file.read()
    try:
        counts = database.import_csv(conn, table, content)
    except (database.AdminError, sqlite3.Error) as exc:
        logger.exception("CSV import into %s failed", table)
        return _error(exc)
    return ImportResult(table=table, **counts)
