"""
Marcação Ambulatorial 查询构造器
索引: /marcacao-ambulatorial-rj-macae/_search
模式: quick / novas / agendadas / atendidas

作者: Tom
创建时间: 2025-11-19T10:12:04+08:00
"""

from typing import Any, Dict, List, Optional

from builders.base import BaseQueryBuilder
from sisreg.constants import STATUS_AGENDADAS, STATUS_ATENDIDAS
from sisreg.models import IndexType, QueryMode


class MarcacaoQueryBuilder(BaseQueryBuilder):
    """
    Marcação 实体级构造器
    - 调度中心编码: 直接 terms 过滤
    - 流程检索: 3 个描述字段，wildcard + match_phrase_prefix
    - 无过滤子句时不带 query（由引擎返回全部）
    """

    index_type = IndexType.SCHEDULING
    status_field = "status_solicitacao"

    SEARCH_FIELDS = (
        "descricao_interna_procedimento",
        "descricao_sigtap_procedimento",
        "nome_grupo_procedimento",
    )

    def central_clause(self, codes: List[str]) -> Dict[str, Any]:
        return self.terms_clause("codigo_central_reguladora", codes)

    def procedure_clause(self, term: str) -> Dict[str, Any]:
        should: List[Dict[str, Any]] = [
            {"wildcard": {field: f"*{term}*"}} for field in self.SEARCH_FIELDS
        ]
        should.extend({"match_phrase_prefix": {field: term}} for field in self.SEARCH_FIELDS)
        return {"bool": {"should": should, "minimum_should_match": 1}}

    def finalize_query(self, must: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        if not must:
            return None
        return {"bool": {"must": must}}


class QuickMarcacaoBuilder(MarcacaoQueryBuilder):
    """快速查询：不做日期与模式状态过滤"""
    mode = QueryMode.QUICK
    sort_order = "desc"


class NovasMarcacaoBuilder(MarcacaoQueryBuilder):
    """新请求：按申请日期过滤"""
    mode = QueryMode.NEW
    date_field = "data_solicitacao"
    sort_order = "desc"


class AgendadasMarcacaoBuilder(MarcacaoQueryBuilder):
    """已预约：按审批日期过滤，限定预约状态集合，审批日期升序"""
    mode = QueryMode.SCHEDULED
    date_field = "data_aprovacao"
    sort_field = "data_aprovacao"
    sort_order = "asc"
    mode_statuses = STATUS_AGENDADAS


class AtendidasMarcacaoBuilder(MarcacaoQueryBuilder):
    """已接诊：按确认日期过滤，限定确认状态"""
    mode = QueryMode.FULFILLED
    date_field = "data_confirmacao"
    sort_field = "data_confirmacao"
    sort_order = "desc"
    mode_statuses = STATUS_ATENDIDAS


__all__ = [
    "MarcacaoQueryBuilder",
    "QuickMarcacaoBuilder",
    "NovasMarcacaoBuilder",
    "AgendadasMarcacaoBuilder",
    "AtendidasMarcacaoBuilder",
]
