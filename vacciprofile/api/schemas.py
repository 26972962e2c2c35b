from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    error: str
    type: str


class TableInfo(BaseModel):
    name: str
    id_column: str
    columns: List[str]
    required: List[str] = Field(default_factory=list)
    booleans: List[str] = Field(default_factory=list)


class TablesResponse(BaseModel):
    tables: List[TableInfo]


class RowsResponse(BaseModel):
    table: str
    rows: List[Dict[str, Any]]
    count: int


class ImportResult(BaseModel):
    table: str
    upserted: int = 0
    inserted: int = 0


class HealthResponse(BaseModel):
    ok: bool = True
    api_base_url: str
    admin_enabled: bool
    version: Optional[str] = None
