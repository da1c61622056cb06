"""
SISREG 常量表
索引路径、状态集合、默认返回字段、字段目录与标签（只读常量）

作者: Tom
创建时间: 2025-11-18T11:15:36+08:00
"""

from types import MappingProxyType
from typing import Dict, List, Mapping, Tuple

from sisreg.models import IndexType, QueryMode


# 远程索引路径（POST {base_url}{path}）
INDEX_PATHS: Mapping[IndexType, str] = MappingProxyType({
    IndexType.SCHEDULING: "/marcacao-ambulatorial-rj-macae/_search",
    IndexType.QUEUE_REQUEST: "/solicitacao-ambulatorial-rj-macae/_search",
})

# 索引名（用于 _mapping 查询）
INDEX_NAMES: Mapping[IndexType, str] = MappingProxyType({
    IndexType.SCHEDULING: "marcacao-ambulatorial-rj-macae",
    IndexType.QUEUE_REQUEST: "solicitacao-ambulatorial-rj-macae",
})

INDEX_LABELS: Mapping[IndexType, str] = MappingProxyType({
    IndexType.SCHEDULING: "Marcações Ambulatoriais",
    IndexType.QUEUE_REQUEST: "Solicitações Ambulatoriais",
})

# 马卡埃（Macaé）调度中心编码，仅作为界面默认可选值，查询时不再强制
CENTRAIS_REGULADORAS_MACAE: Tuple[str, ...] = ("32C164", "32C206", "32C211", "32C220")

# "agendadas" 模式固定状态集合
STATUS_AGENDADAS: Tuple[str, ...] = (
    "SOLICITAÇÃO / AGENDADA / FILA DE ESPERA",
    "SOLICITAÇÃO / AGENDADA / SOLICITANTE",
    "SOLICITAÇÃO / AUTORIZADA / REGULADOR",
    "AGENDAMENTO / PENDENTE CONFIRMAÇÃO / EXECUTANTE",
    "SOLICITAÇÃO / AGENDADA / COORDENADOR",
)

# "atendidas" 模式固定状态集合
STATUS_ATENDIDAS: Tuple[str, ...] = (
    "AGENDAMENTO / CONFIRMADO / EXECUTANTE",
)

# 高风险（急诊 + 紧急）分级编码
HIGH_RISK_CODES: Tuple[str, ...] = ("0", "1")

# ============================================================
# 默认 _source 字段：Marcação Ambulatorial
# ============================================================
_MARCACAO_COMMON: Tuple[str, ...] = (
    "codigo_solicitacao",
    "no_usuario",
    "cns_usuario",
    "sexo_usuario",
    "dt_nascimento_usuario",
    "municipio_paciente_residencia",
    "telefone",
    "codigo_interno_procedimento",
    "descricao_interna_procedimento",
    "descricao_sigtap_procedimento",
    "nome_grupo_procedimento",
    "codigo_classificacao_risco",
    "status_solicitacao",
    "sigla_situacao",
    "nome_unidade_executante",
)

_MARCACAO_NOVAS: Tuple[str, ...] = (
    "data_solicitacao",
    "codigo_central_reguladora",
    "nome_central_reguladora",
    "codigo_unidade_solicitante",
    "nome_unidade_solicitante",
    "nome_medico_solicitante",
)

_MARCACAO_AGENDADAS: Tuple[str, ...] = (
    "data_solicitacao",
    "data_aprovacao",
    "data_marcacao",
    "codigo_central_reguladora",
    "nome_central_reguladora",
    "codigo_unidade_executante",
    "nome_unidade_executante",
    "nome_profissional_executante",
)

_MARCACAO_ATENDIDAS: Tuple[str, ...] = (
    "data_solicitacao",
    "data_aprovacao",
    "data_confirmacao",
    "data_marcacao",
    "codigo_central_reguladora",
    "nome_central_reguladora",
    "codigo_unidade_executante",
    "nome_unidade_executante",
    "nome_profissional_executante",
)

# ============================================================
# 默认 _source 字段：Solicitação Ambulatorial (fila)
# ============================================================
_SOLICITACAO_FILA: Tuple[str, ...] = (
    "codigo_central_reguladora",
    "codigo_central_solicitante",
    "data_solicitacao",
    "codigo_unidade_solicitante",
    "nome_unidade_solicitante",
    "nome_medico_solicitante",
    "cpf_profissional_solicitante",
    "sigla_situacao",
    "codigo_interno_procedimento",
    "descricao_interna_procedimento",
    "descricao_sigtap_procedimento",
    "nome_grupo_procedimento",
    "codigo_grupo_procedimento",
    # 备用描述字段（源数据各批次命名不一致）
    "descricao_procedimento",
    "nome_procedimento",
    "procedimento",
    "codigo_tipo_regulacao",
    "codigo_classificacao_risco",
    "cns_usuario",
    "no_usuario",
    "no_mae_usuario",
    "dt_nascimento_usuario",
    "municipio_paciente_residencia",
    "sexo_usuario",
    "telefone",
)

# (实体类型, 模式) -> 默认返回字段；quick 沿用 novas 的字段
DEFAULT_FIELDS: Mapping[Tuple[IndexType, QueryMode], Tuple[str, ...]] = MappingProxyType({
    (IndexType.SCHEDULING, QueryMode.QUICK): _MARCACAO_COMMON + _MARCACAO_NOVAS,
    (IndexType.SCHEDULING, QueryMode.NEW): _MARCACAO_COMMON + _MARCACAO_NOVAS,
    (IndexType.SCHEDULING, QueryMode.SCHEDULED): _MARCACAO_COMMON + _MARCACAO_AGENDADAS,
    (IndexType.SCHEDULING, QueryMode.FULFILLED): _MARCACAO_COMMON + _MARCACAO_ATENDIDAS,
    (IndexType.QUEUE_REQUEST, QueryMode.QUEUE): _SOLICITACAO_FILA,
})

# 各实体的状态字段（聚合与过滤使用）
STATUS_FIELDS: Mapping[IndexType, str] = MappingProxyType({
    IndexType.SCHEDULING: "status_solicitacao",
    IndexType.QUEUE_REQUEST: "sigla_situacao",
})

# 各实体的单位字段（聚合使用）
UNIT_FIELDS: Mapping[IndexType, str] = MappingProxyType({
    IndexType.SCHEDULING: "nome_unidade_executante",
    IndexType.QUEUE_REQUEST: "nome_unidade_solicitante",
})

# 风险分级标签
RISK_LABELS: Mapping[int, str] = MappingProxyType({
    0: "Emergência",
    1: "Urgência",
    2: "Prioridade não urgente",
    3: "Eletivo",
    4: "Eletivo",
})

# 情况编码标签
SITUACAO_LABELS: Mapping[str, str] = MappingProxyType({
    "P": "Pendente",
    "R": "Reenviada",
    "D": "Devolvida",
    "N": "Negada",
    "A": "Aprovada",
    "C": "Cancelada",
})

FIELD_CATEGORIES: Tuple[Dict[str, str], ...] = (
    {"key": "identificacao", "label": "Identificação"},
    {"key": "paciente", "label": "Paciente"},
    {"key": "datas", "label": "Datas"},
    {"key": "procedimento", "label": "Procedimento"},
    {"key": "unidade", "label": "Unidade"},
    {"key": "profissional", "label": "Profissional"},
    {"key": "status", "label": "Status"},
)


def _catalog(rows: List[Tuple[str, str, str]]) -> Tuple[Dict[str, str], ...]:
    return tuple({"key": k, "label": label, "category": c} for k, label, c in rows)


ALL_FIELDS_MARCACAO = _catalog([
    ("codigo_solicitacao", "Código Solicitação", "identificacao"),
    ("no_usuario", "Nome Paciente", "paciente"),
    ("cns_usuario", "CNS Paciente", "paciente"),
    ("no_mae_usuario", "Nome da Mãe", "paciente"),
    ("sexo_usuario", "Sexo", "paciente"),
    ("dt_nascimento_usuario", "Data Nascimento", "paciente"),
    ("municipio_paciente_residencia", "Município Residência", "paciente"),
    ("endereco_paciente_residencia", "Endereço", "paciente"),
    ("telefone", "Telefone", "paciente"),
    ("data_solicitacao", "Data Solicitação", "datas"),
    ("data_aprovacao", "Data Aprovação", "datas"),
    ("data_confirmacao", "Data Confirmação", "datas"),
    ("data_marcacao", "Data Marcação", "datas"),
    ("data_desejada", "Data Desejada", "datas"),
    ("dt_atualizacao", "Data Atualização", "datas"),
    ("codigo_interno_procedimento", "Código Procedimento", "procedimento"),
    ("descricao_interna_procedimento", "Descrição Procedimento", "procedimento"),
    ("descricao_sigtap_procedimento", "Descrição SIGTAP", "procedimento"),
    ("codigo_grupo_procedimento", "Código Grupo", "procedimento"),
    ("nome_grupo_procedimento", "Nome Grupo", "procedimento"),
    ("codigo_cid_solicitado", "CID Solicitado", "procedimento"),
    ("descricao_cid_solicitado", "Descrição CID", "procedimento"),
    ("codigo_classificacao_risco", "Classificação Risco", "procedimento"),
    ("codigo_central_reguladora", "Código Central Reguladora", "unidade"),
    ("nome_central_reguladora", "Nome Central Reguladora", "unidade"),
    ("codigo_central_solicitante", "Código Central Solicitante", "unidade"),
    ("nome_central_solicitante", "Nome Central Solicitante", "unidade"),
    ("codigo_unidade_solicitante", "Código Unidade Solicitante", "unidade"),
    ("nome_unidade_solicitante", "Nome Unidade Solicitante", "unidade"),
    ("codigo_unidade_executante", "Código Unidade Executante", "unidade"),
    ("nome_unidade_executante", "Nome Unidade Executante", "unidade"),
    ("nome_medico_solicitante", "Médico Solicitante", "profissional"),
    ("nome_profissional_executante", "Profissional Executante", "profissional"),
    ("cpf_profissional_executante", "CPF Executante", "profissional"),
    ("status_solicitacao", "Status Solicitação", "status"),
    ("sigla_situacao", "Sigla Situação", "status"),
    ("codigo_tipo_regulacao", "Tipo Regulação", "status"),
])

ALL_FIELDS_SOLICITACAO = _catalog([
    ("codigo_central_reguladora", "Código Central Reguladora", "unidade"),
    ("codigo_central_solicitante", "Código Central Solicitante", "unidade"),
    ("data_solicitacao", "Data Solicitação", "datas"),
    ("codigo_unidade_solicitante", "Código Unidade Solicitante", "unidade"),
    ("nome_unidade_solicitante", "Nome Unidade Solicitante", "unidade"),
    ("nome_medico_solicitante", "Médico Solicitante", "profissional"),
    ("cpf_profissional_solicitante", "CPF Profissional Solicitante", "profissional"),
    ("sigla_situacao", "Sigla Situação", "status"),
    ("codigo_interno_procedimento", "Código Procedimento", "procedimento"),
    ("descricao_interna_procedimento", "Descrição Procedimento", "procedimento"),
    ("codigo_classificacao_risco", "Classificação Risco", "procedimento"),
    ("cns_usuario", "CNS Paciente", "paciente"),
    ("no_usuario", "Nome Paciente", "paciente"),
    ("no_mae_usuario", "Nome da Mãe", "paciente"),
    ("dt_nascimento_usuario", "Data Nascimento", "paciente"),
    ("municipio_paciente_residencia", "Município Residência", "paciente"),
    ("sexo_usuario", "Sexo", "paciente"),
    ("telefone", "Telefone", "paciente"),
    ("codigo_grupo_procedimento", "Código Grupo Procedimento", "procedimento"),
    ("nome_grupo_procedimento", "Nome Grupo Procedimento", "procedimento"),
    ("codigo_tipo_regulacao", "Tipo Regulação", "status"),
])

FIELD_CATALOG: Mapping[IndexType, Tuple[Dict[str, str], ...]] = MappingProxyType({
    IndexType.SCHEDULING: ALL_FIELDS_MARCACAO,
    IndexType.QUEUE_REQUEST: ALL_FIELDS_SOLICITACAO,
})


def default_fields(index_type: IndexType, mode: QueryMode) -> List[str]:
    """返回 (实体类型, 模式) 的默认投影字段列表（新列表，可安全修改）"""
    return list(DEFAULT_FIELDS[(index_type, mode)])


__all__ = [
    "INDEX_PATHS",
    "INDEX_NAMES",
    "INDEX_LABELS",
    "CENTRAIS_REGULADORAS_MACAE",
    "STATUS_AGENDADAS",
    "STATUS_ATENDIDAS",
    "HIGH_RISK_CODES",
    "DEFAULT_FIELDS",
    "STATUS_FIELDS",
    "UNIT_FIELDS",
    "RISK_LABELS",
    "SITUACAO_LABELS",
    "FIELD_CATEGORIES",
    "ALL_FIELDS_MARCACAO",
    "ALL_FIELDS_SOLICITACAO",
    "FIELD_CATALOG",
    "default_fields",
]
