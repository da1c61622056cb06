"""
Solicitação Ambulatorial（fila）查询构造器
索引: /solicitacao-ambulatorial-rj-macae/_search
模式: fila

注意：早期版本强制限定马卡埃调度中心编码，现已取消，编码过滤改为可选。

作者: Tom
创建时间: 2025-11-19T11:48:22+08:00
"""

from typing import Any, Dict, List, Optional

from builders.base import BaseQueryBuilder
from sisreg.models import IndexType, QueryMode


class FilaSolicitacaoBuilder(BaseQueryBuilder):
    """
    排队申请构造器
    - 调度中心编码: 同时匹配 text 与 keyword 两种映射
    - 流程检索: 6 个备用描述字段 + 内部流程编码精确匹配，主描述字段额外做模糊匹配
    - 无过滤子句时回退为 match_all（空 bool.must 在引擎中语义不同）
    """

    index_type = IndexType.QUEUE_REQUEST
    mode = QueryMode.QUEUE
    status_field = "sigla_situacao"
    date_field = "data_solicitacao"
    sort_field = "data_solicitacao"
    sort_order = "asc"

    PRIMARY_SEARCH_FIELD = "descricao_interna_procedimento"
    ALTERNATE_SEARCH_FIELDS = (
        "descricao_procedimento",
        "nome_procedimento",
        "procedimento",
        "descricao_sigtap_procedimento",
        "nome_grupo_procedimento",
    )
    CODE_FIELD = "codigo_interno_procedimento"

    def central_clause(self, codes: List[str]) -> Dict[str, Any]:
        return {
            "bool": {
                "should": [
                    self.terms_clause("codigo_central_reguladora", codes),
                    self.terms_clause("codigo_central_reguladora.keyword", codes),
                ],
                "minimum_should_match": 1,
            }
        }

    def procedure_clause(self, term: str) -> Dict[str, Any]:
        primary = self.PRIMARY_SEARCH_FIELD
        should: List[Dict[str, Any]] = [
            {"wildcard": {primary: f"*{term}*"}},
            {"match_phrase_prefix": {primary: term}},
            {"match": {primary: {"query": term, "fuzziness": "AUTO"}}},
        ]
        for field in self.ALTERNATE_SEARCH_FIELDS:
            should.append({"wildcard": {field: f"*{term}*"}})
            should.append({"match_phrase_prefix": {field: term}})
        should.append({"term": {self.CODE_FIELD: term}})
        return {"bool": {"should": should, "minimum_should_match": 1}}

    def finalize_query(self, must: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        if not must:
            return {"match_all": {}}
        return {"bool": {"must": must}}


__all__ = ["FilaSolicitacaoBuilder"]
