import sys
from pathlib import Path
from typing import Any, Dict, Optional
from time import perf_counter

_ROOT = Path(__file__).resolve().parents[1]
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from fastapi import FastAPI, Request, APIRouter, Header
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger

import orchestrator
from orchestrator import IndexExplorer
from config.credentials import CredentialsNotConfiguredError, credential_store
from config.log import setup_logger
from config.settings import settings
from sisreg.constants import FIELD_CATALOG, FIELD_CATEGORIES, CENTRAIS_REGULADORAS_MACAE, RISK_LABELS, SITUACAO_LABELS, default_fields
from sisreg.models import FilterRequest, IndexType, SisregCredentials, VALID_MODES
from api.schemas import (
    ApiResponse,
    ConfigView,
    ConnectionTestRequest,
    DashboardRequest,
    ExploreRequest,
    ExportRequest,
    FieldValuesRequest,
    InsightRequest,
    MetricsRequest,
    TopProceduresRequest,
)


setup_logger()

app = FastAPI(title="SISREG Consulta API", version=settings.app_version)
router = APIRouter(prefix="/api")

# 远程查询失败（ok=False）时的业务码
REMOTE_FAILURE_CODE = 1003


def _wrap(result: Dict[str, Any], message_key: str = "error") -> ApiResponse:
    """将编排层结果包装为 ApiResponse"""
    if result.get("ok"):
        return ApiResponse(code=0, message="OK", success=True, data=result)
    return ApiResponse(
        code=REMOTE_FAILURE_CODE,
        message=result.get(message_key) or "Error",
        success=False,
        data=result,
    )


@app.exception_handler(CredentialsNotConfiguredError)
def credentials_exception_handler(request: Request, exc: CredentialsNotConfiguredError):
    wrapped = ApiResponse(code=REMOTE_FAILURE_CODE, message=str(exc), success=False, data=None)
    return JSONResponse(status_code=200, content=wrapped.model_dump())


@app.exception_handler(RequestValidationError)
def validation_exception_handler(request: Request, exc: RequestValidationError):
    wrapped = ApiResponse(
        code=1001,
        message="Invalid request",
        success=False,
        data={"errors": [str(e.get("msg")) for e in exc.errors()]},
    )
    return JSONResponse(status_code=422, content=wrapped.model_dump())


@app.exception_handler(Exception)
def general_exception_handler(request: Request, exc: Exception):
    logger.exception(f"API: 未预期异常 {request.url.path}")
    wrapped = ApiResponse(code=1002, message="Error", success=False, data={"errors": [str(exc)]})
    return JSONResponse(status_code=400, content=wrapped.model_dump())


@router.get("/health", response_model=ApiResponse)
def health_endpoint() -> ApiResponse:
    return ApiResponse(data={"status": "ok", "app": settings.app_name, "version": settings.app_version})


# ----------------------------- 凭证配置 -----------------------------

@router.get("/config", response_model=ApiResponse)
def get_config_endpoint(x_user_id: str = Header(default="anonymous")) -> ApiResponse:
    creds = credential_store.get(x_user_id)
    if creds is None:
        return ApiResponse(data=ConfigView(configured=False).model_dump())
    view = ConfigView(
        configured=True,
        base_url=creds.base_url,
        username=creds.username,
        stored=credential_store.is_stored(x_user_id),
    )
    return ApiResponse(data=view.model_dump())


@router.put("/config", response_model=ApiResponse)
def save_config_endpoint(
    req: SisregCredentials, x_user_id: str = Header(default="anonymous")
) -> ApiResponse:
    saved = credential_store.save(x_user_id, req)
    view = ConfigView(configured=True, base_url=saved.base_url, username=saved.username, stored=True)
    return ApiResponse(data=view.model_dump())


@router.delete("/config", response_model=ApiResponse)
def delete_config_endpoint(x_user_id: str = Header(default="anonymous")) -> ApiResponse:
    return ApiResponse(data={"deleted": credential_store.delete(x_user_id)})


@router.post("/config/test", response_model=ApiResponse)
def test_config_endpoint(
    req: Optional[ConnectionTestRequest] = None, x_user_id: str = Header(default="anonymous")
) -> ApiResponse:
    index_type = req.index_type if req else None
    result = orchestrator.check_connection(credential_store.get(x_user_id), index_type)
    return _wrap(result, message_key="message")


# ----------------------------- 字段目录 -----------------------------

@router.get("/fields/{index_type}", response_model=ApiResponse)
def fields_endpoint(index_type: IndexType) -> ApiResponse:
    return ApiResponse(data={
        "fields": list(FIELD_CATALOG[index_type]),
        "categories": list(FIELD_CATEGORIES),
        "modes": [m.value for m in VALID_MODES[index_type]],
        "default_fields": {m.value: default_fields(index_type, m) for m in VALID_MODES[index_type]},
        "central_codes": list(CENTRAIS_REGULADORAS_MACAE),
        "risk_labels": {str(code): label for code, label in RISK_LABELS.items()},
        "situacao_labels": dict(SITUACAO_LABELS),
    })


# ----------------------------- 索引探索 -----------------------------

@router.post("/explore/sample-doc", response_model=ApiResponse)
def sample_doc_endpoint(req: ExploreRequest, x_user_id: str = Header(default="anonymous")) -> ApiResponse:
    creds = credential_store.require(x_user_id)
    return _wrap(IndexExplorer().sample_document(creds, req.index_type))


@router.post("/explore/index", response_model=ApiResponse)
def explore_index_endpoint(req: ExploreRequest, x_user_id: str = Header(default="anonymous")) -> ApiResponse:
    creds = credential_store.require(x_user_id)
    return _wrap(IndexExplorer().explore_index(creds, req.index_type, req.size))


@router.post("/explore/field-values", response_model=ApiResponse)
def field_values_endpoint(req: FieldValuesRequest, x_user_id: str = Header(default="anonymous")) -> ApiResponse:
    creds = credential_store.require(x_user_id)
    result = IndexExplorer().explore_field_values(creds, req.index_type, req.field, req.size)
    if result.get("ok"):
        result["values"] = [v.model_dump() for v in result["values"]]
    return _wrap(result)


@router.post("/explore/mapping", response_model=ApiResponse)
def mapping_endpoint(req: ExploreRequest, x_user_id: str = Header(default="anonymous")) -> ApiResponse:
    creds = credential_store.require(x_user_id)
    return _wrap(IndexExplorer().explore_mapping(creds, req.index_type))


# ----------------------------- 查询与导出 -----------------------------

@router.post("/search/execute", response_model=ApiResponse)
def search_endpoint(req: FilterRequest, x_user_id: str = Header(default="anonymous")) -> ApiResponse:
    start = perf_counter()
    result = orchestrator.search(credential_store.get(x_user_id), req)
    result["duration_ms"] = (perf_counter() - start) * 1000.0
    return _wrap(result)


@router.post("/search/export-xlsx", response_model=ApiResponse)
def export_endpoint(req: ExportRequest, x_user_id: str = Header(default="anonymous")) -> ApiResponse:
    filter_request = FilterRequest(**req.model_dump(exclude={"export_all_pages"}))
    result = orchestrator.export_xlsx(
        credential_store.get(x_user_id), filter_request, export_all_pages=req.export_all_pages
    )
    return _wrap(result)


@router.post("/dashboard/aggregate", response_model=ApiResponse)
def dashboard_endpoint(req: DashboardRequest, x_user_id: str = Header(default="anonymous")) -> ApiResponse:
    filter_request = FilterRequest(**req.model_dump(exclude={"procedure_filter"}))
    result = orchestrator.dashboard_aggregate(
        credential_store.get(x_user_id), filter_request, procedure_filter=req.procedure_filter
    )
    return _wrap(result)


@router.post("/insights/generate", response_model=ApiResponse)
def insights_endpoint(req: InsightRequest) -> ApiResponse:
    result = orchestrator.generate_insights(
        req.data, req.index_type, req.mode, req.date_start, req.date_end
    )
    return _wrap(result)


# ----------------------------- 管理指标 -----------------------------

@router.post("/metrics/average-wait-time", response_model=ApiResponse)
def average_wait_time_endpoint(req: MetricsRequest, x_user_id: str = Header(default="anonymous")) -> ApiResponse:
    result = orchestrator.average_wait_time(credential_store.get(x_user_id), req.date_start, req.date_end)
    return _wrap(result)


@router.post("/metrics/top-procedures", response_model=ApiResponse)
def top_procedures_endpoint(req: TopProceduresRequest, x_user_id: str = Header(default="anonymous")) -> ApiResponse:
    result = orchestrator.top_procedures(
        credential_store.get(x_user_id), req.date_start, req.date_end, limit=req.limit
    )
    return _wrap(result)


app.include_router(router)
