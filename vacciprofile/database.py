"""Database connection utilities for the admin tables."""

from __future__ import annotations

import io
import logging
import sqlite3
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Union

import pandas as pd

from vacciprofile.config import settings

logger = logging.getLogger(__name__)


# table -> id column, data columns (name -> sqlite type), required, boolean columns
TABLES: Dict[str, Dict[str, Any]] = {
    "manufacturers": {
        "id": "manufacturer_id",
        "columns": {
            "name": "TEXT NOT NULL",
            "website": "TEXT",
            "headquarters": "TEXT",
            "founded": "TEXT",
            "ceo": "TEXT",
            "revenue_operating_income_net_income": "TEXT",
            "total_assets_total_equity": "TEXT",
            "num_employees": "TEXT",
            "history": "TEXT",
            "licensed_vaccines": "TEXT",
            "vaccine_candidates": "TEXT",
        },
        "required": ["name"],
        "booleans": [],
    },
    "licensed_vaccines": {
        "id": "licensed_vaccine_id",
        "columns": {
            "pathogen_name": "TEXT",
            "vaccine_brand_name": "TEXT NOT NULL",
            "single_or_combination": "TEXT",
            "authority_name": "TEXT",
            "vaccine_link": "TEXT",
            "authority_link": "TEXT",
            "manufacturer": "TEXT",
        },
        "required": ["vaccine_brand_name"],
        "booleans": [],
    },
    "vaccine_candidates": {
        "id": "candidate_id",
        "columns": {
            "pathogen_name": "TEXT",
            "vaccine_name": "TEXT NOT NULL",
            "vaccine_link": "TEXT",
            "phase_i": "TEXT",
            "phase_ii": "TEXT",
            "phase_iii": "TEXT",
            "phase_iv": "TEXT",
            "manufacturer": "TEXT",
        },
        "required": ["vaccine_name"],
        "booleans": [],
    },
    "licensing_authorities": {
        "id": "authority_id",
        "columns": {
            "country": "TEXT",
            "authority_name": "TEXT NOT NULL",
            "info": "TEXT",
            "vaccine_brand_name": "TEXT",
            "single_or_combination": "TEXT",
            "pathogen_name": "TEXT",
            "manufacturer": "TEXT",
            "website": "TEXT",
        },
        "required": ["authority_name"],
        "booleans": [],
    },
    "nitags": {
        "id": "nitag_id",
        "columns": {
            "country": "TEXT NOT NULL",
            "available": "INTEGER NOT NULL DEFAULT 0",
            "website": "TEXT",
            "url": "TEXT",
            "nitag_name": "TEXT",
            "established": "TEXT",
        },
        "required": ["country"],
        "booleans": ["available"],
    },
}

TRUE_VALUES = {"true", "yes", "1", "y"}
FALSE_VALUES = {"false", "no", "0", "n", ""}


class AdminError(ValueError):
    """Rejected admin write. ``status_code`` is the HTTP status to report."""

    def __init__(self, message: str, status_code: int = 400) -> None:
        super().__init__(message)
        self.status_code = status_code


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def table_spec(table: str) -> Dict[str, Any]:
    try:
        return TABLES[table]
    except KeyError:
        raise AdminError(f"Unknown table: {table}", status_code=404) from None


def connect(path: Optional[str] = None) -> sqlite3.Connection:
    # a request dependency and its route can run on different worker threads
    conn = sqlite3.connect(path or settings.DATABASE_PATH, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    return conn


def create_tables(conn: sqlite3.Connection) -> None:
    """Create the admin tables in SQLite."""
    cursor = conn.cursor()
    for name, spec in TABLES.items():
        cols = [f"{spec['id']} INTEGER PRIMARY KEY AUTOINCREMENT"]
        cols += [f"{col} {sqltype}" for col, sqltype in spec["columns"].items()]
        cols += ["created_at TEXT NOT NULL", "updated_at TEXT NOT NULL"]
        query = f"CREATE TABLE IF NOT EXISTS {name} (\n    " + ",\n    ".join(cols) + "\n);"
        cursor.execute(query)
    conn.commit()


def coerce_bool(value: Any) -> int:
    if isinstance(value, bool):
        return int(value)
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return 0
    text = str(value).strip().lower()
    if text in TRUE_VALUES:
        return 1
    if text in FALSE_VALUES:
        return 0
    raise AdminError(f"Not a boolean: {value!r}")


def _clean_values(table: str, values: Mapping[str, Any], *, partial: bool) -> Dict[str, Any]:
    spec = table_spec(table)
    allowed = set(spec["columns"])
    unknown = [k for k in values if k not in allowed]
    if unknown:
        raise AdminError(f"Unknown columns for {table}: {', '.join(sorted(unknown))}")

    if not partial:
        missing = [c for c in spec["required"] if values.get(c) in (None, "")]
        if missing:
            raise AdminError(f"Missing required columns for {table}: {', '.join(missing)}")

    out = dict(values)
    for col in spec["booleans"]:
        if col in out:
            out[col] = coerce_bool(out[col])
    return out


def _row_dict(row: sqlite3.Row) -> Dict[str, Any]:
    return {k: row[k] for k in row.keys()}


def list_rows(conn: sqlite3.Connection, table: str) -> List[Dict[str, Any]]:
    spec = table_spec(table)
    cur = conn.execute(f"SELECT * FROM {table} ORDER BY {spec['id']}")
    return [_row_dict(r) for r in cur.fetchall()]


def get_row(conn: sqlite3.Connection, table: str, row_id: int) -> Dict[str, Any]:
    spec = table_spec(table)
    row = conn.execute(f"SELECT * FROM {table} WHERE {spec['id']} = ?", (row_id,)).fetchone()
    if row is None:
        raise AdminError(f"No row {row_id} in {table}", status_code=404)
    return _row_dict(row)


def insert_row(conn: sqlite3.Connection, table: str, values: Mapping[str, Any]) -> Dict[str, Any]:
    data = _clean_values(table, values, partial=False)
    now = _now()
    data["created_at"] = now
    data["updated_at"] = now

    cols = list(data)
    placeholders = ", ".join(["?"] * len(cols))
    with conn:
        cur = conn.execute(
            f"INSERT INTO {table} ({', '.join(cols)}) VALUES ({placeholders})",
            [data[c] for c in cols],
        )
    return get_row(conn, table, cur.lastrowid)


def update_row(
    conn: sqlite3.Connection, table: str, row_id: int, values: Mapping[str, Any]
) -> Dict[str, Any]:
    spec = table_spec(table)
    data = _clean_values(table, values, partial=True)
    if not data:
        raise AdminError("Nothing to update")
    data["updated_at"] = _now()

    assignments = ", ".join(f"{c} = ?" for c in data)
    with conn:
        cur = conn.execute(
            f"UPDATE {table} SET {assignments} WHERE {spec['id']} = ?",
            [*data.values(), row_id],
        )
    if cur.rowcount == 0:
        raise AdminError(f"No row {row_id} in {table}", status_code=404)
    return get_row(conn, table, row_id)


def delete_row(conn: sqlite3.Connection, table: str, row_id: int) -> None:
    spec = table_spec(table)
    with conn:
        cur = conn.execute(f"DELETE FROM {table} WHERE {spec['id']} = ?", (row_id,))
    if cur.rowcount == 0:
        raise AdminError(f"No row {row_id} in {table}", status_code=404)


def read_csv(source: Union[str, bytes, io.IOBase]) -> pd.DataFrame:
    if isinstance(source, bytes):
        source = io.BytesIO(source)
    df = pd.read_csv(source, dtype=str, keep_default_na=False)
    df.columns = [str(c).strip() for c in df.columns]
    return df


def upsert_df(conn: sqlite3.Connection, table: str, df: pd.DataFrame) -> Dict[str, int]:
    """
    Write a validated frame: rows with an id are upserted, the rest appended.

    Header names must match column names exactly; unknown columns and missing
    required columns reject the whole file.
    """
    spec = table_spec(table)
    id_col = spec["id"]
    allowed = set(spec["columns"]) | {id_col}

    unknown = [c for c in df.columns if c not in allowed]
    if unknown:
        raise AdminError(f"Unknown columns for {table}: {', '.join(unknown)}")
    missing = [c for c in spec["required"] if c not in df.columns]
    if missing:
        raise AdminError(f"Missing required columns for {table}: {', '.join(missing)}")

    df = df.copy()
    for col in spec["booleans"]:
        if col in df.columns:
            df[col] = df[col].apply(coerce_bool)
    df = df.replace({"": None})

    now = _now()
    df["created_at"] = now
    df["updated_at"] = now

    if id_col in df.columns:
        df[id_col] = pd.to_numeric(df[id_col], errors="coerce")
        with_id = df[df[id_col].notna()].copy()
        with_id[id_col] = with_id[id_col].astype(int)
        without_id = df[df[id_col].isna()].drop(columns=[id_col])
    else:
        with_id = df.iloc[0:0]
        without_id = df

    data_cols = [c for c in df.columns if c not in (id_col, "created_at")]

    with conn:
        cur = conn.cursor()
        if not with_id.empty:
            cols = list(with_id.columns)
            placeholders = ", ".join(["?"] * len(cols))
            updates = ",\n        ".join(f"{c} = excluded.{c}" for c in data_cols)
            sql = f"""
            INSERT INTO {table} ({", ".join(cols)})
            VALUES ({placeholders})
            ON CONFLICT({id_col}) DO UPDATE SET
                {updates};
            """
            cur.executemany(sql, _records(with_id, cols))
        if not without_id.empty:
            cols = list(without_id.columns)
            placeholders = ", ".join(["?"] * len(cols))
            cur.executemany(
                f"INSERT INTO {table} ({', '.join(cols)}) VALUES ({placeholders})",
                _records(without_id, cols),
            )

    counts = {"upserted": len(with_id), "inserted": len(without_id)}
    logger.info("CSV import into %s: %s", table, counts)
    return counts


def _records(df: pd.DataFrame, cols: List[str]) -> List[tuple]:
    # numpy scalars -> python for sqlite3
    return [
        tuple(None if v is None or (isinstance(v, float) and pd.isna(v)) else _py(v) for v in row)
        for row in df[cols].itertuples(index=False, name=None)
    ]


def _py(value: Any) -> Any:
    return value.item() if hasattr(value, "item") else value


def import_csv(conn: sqlite3.Connection, table: str, source: Union[str, bytes, io.IOBase]) -> Dict[str, int]:
    try:
        df = read_csv(source)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as exc:
        raise AdminError(f"Could not read CSV: {exc}") from exc
    if df.empty:
        raise AdminError("CSV has no rows")
    return upsert_df(conn, table, df)
