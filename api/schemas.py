from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field

from sisreg.models import FilterRequest, IndexType, QueryMode


class ConfigView(BaseModel):
    configured: bool
    base_url: Optional[str] = None
    username: Optional[str] = None
    stored: bool = False


class ConnectionTestRequest(BaseModel):
    index_type: Optional[IndexType] = None


class ExploreRequest(BaseModel):
    index_type: IndexType = IndexType.SCHEDULING
    size: int = Field(default=10, ge=1, le=100)


class FieldValuesRequest(BaseModel):
    index_type: IndexType = IndexType.SCHEDULING
    field: str = Field(..., min_length=1)
    size: int = Field(default=100, ge=1, le=1000)


class ExportRequest(FilterRequest):
    export_all_pages: bool = True


class DashboardRequest(FilterRequest):
    procedure_filter: Optional[List[str]] = None


class InsightRequest(BaseModel):
    data: List[Dict[str, Any]] = Field(default_factory=list)
    mode: QueryMode
    index_type: IndexType = IndexType.SCHEDULING
    date_start: Optional[str] = None
    date_end: Optional[str] = None


class MetricsRequest(BaseModel):
    date_start: Optional[str] = None
    date_end: Optional[str] = None


class TopProceduresRequest(MetricsRequest):
    limit: int = Field(default=10, ge=1, le=50)


class ApiResponse(BaseModel):
    code: int = 0
    message: str = "OK"
    success: bool = True
    data: Any = None
