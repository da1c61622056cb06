"""
记录字段工具 (RecordMapper)
从 SISREG 原始 _source 记录中解析描述、日期、风险与状态等字段

源数据在不同批次中描述字段命名不一致，统一在此处按优先级回退解析。

作者: Tom
创建时间: 2025-11-18T14:26:09+08:00
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Sequence

from dateutil.parser import isoparse

from sisreg.constants import RISK_LABELS, SITUACAO_LABELS, STATUS_FIELDS, UNIT_FIELDS
from sisreg.models import IndexType


class RecordMapper:
    """
    记录字段映射器

    - 描述字段回退链: 内部描述 → SIGTAP 描述 → 分组名 → "Código: {code}" → "Sem descrição"
    - 日期解析: ISO 日期/时间，无时区时按 UTC 处理
    """

    DESCRIPTION_FALLBACK_FIELDS = (
        "descricao_interna_procedimento",
        "descricao_sigtap_procedimento",
        "nome_grupo_procedimento",
    )

    # 仪表盘与导出汇总中使用的较短回退链（与远程聚合口径一致）
    PROCEDURE_NAME_FIELDS = (
        "descricao_interna_procedimento",
        "nome_grupo_procedimento",
    )

    CODE_FIELD = "codigo_interno_procedimento"
    REQUEST_DATE_FIELD = "data_solicitacao"
    RISK_FIELD = "codigo_classificacao_risco"

    NO_DESCRIPTION = "Sem descrição"
    NOT_AVAILABLE = "N/A"

    @staticmethod
    def is_present(value: Any) -> bool:
        """值是否有效（None 与空白字符串视为缺失，数字 0 视为有效）"""
        if value is None:
            return False
        if isinstance(value, str):
            return value.strip() != ""
        return True

    def first_present(self, record: Dict[str, Any], fields: Sequence[str]) -> Optional[str]:
        for field in fields:
            value = record.get(field)
            if self.is_present(value):
                return str(value)
        return None

    def procedure_code(self, record: Dict[str, Any]) -> str:
        code = record.get(self.CODE_FIELD)
        return str(code) if self.is_present(code) else ""

    def resolve_procedure_description(self, record: Dict[str, Any]) -> str:
        """按回退链解析流程描述"""
        description = self.first_present(record, self.DESCRIPTION_FALLBACK_FIELDS)
        if description is not None:
            return description
        code = self.procedure_code(record)
        if code:
            return f"Código: {code}"
        return self.NO_DESCRIPTION

    def procedure_name(self, record: Dict[str, Any]) -> Optional[str]:
        """仪表盘口径的流程名称；缺失时返回 None（不计入统计）"""
        return self.first_present(record, self.PROCEDURE_NAME_FIELDS)

    def unit_name(self, record: Dict[str, Any], index_type: IndexType) -> Optional[str]:
        return self.first_present(record, (UNIT_FIELDS[index_type],))

    def status(self, record: Dict[str, Any], index_type: IndexType) -> str:
        value = self.first_present(record, (STATUS_FIELDS[index_type], "sigla_situacao"))
        return value if value is not None else self.NOT_AVAILABLE

    def risk_code(self, record: Dict[str, Any]) -> str:
        value = self.first_present(record, (self.RISK_FIELD,))
        return value if value is not None else self.NOT_AVAILABLE

    def parse_date(self, value: Any) -> Optional[datetime]:
        """解析 ISO 日期/时间；无法解析返回 None"""
        if not self.is_present(value):
            return None
        try:
            parsed = isoparse(str(value).strip())
        except (ValueError, OverflowError):
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    def request_date(self, record: Dict[str, Any]) -> Optional[datetime]:
        return self.parse_date(record.get(self.REQUEST_DATE_FIELD))

    @staticmethod
    def next_day_iso(day: str) -> str:
        """YYYY-MM-DD 的次日；非法日期原样返回，由远程引擎报错"""
        try:
            parsed = datetime.strptime(day, "%Y-%m-%d")
        except (TypeError, ValueError):
            return day
        return (parsed + timedelta(days=1)).strftime("%Y-%m-%d")

    @staticmethod
    def risk_label(code: Any) -> str:
        try:
            return RISK_LABELS.get(int(code), str(code))
        except (TypeError, ValueError):
            return str(code)

    @staticmethod
    def situacao_label(code: Any) -> str:
        return SITUACAO_LABELS.get(str(code), str(code))

    @staticmethod
    def cell_value(value: Any) -> str:
        """导出单元格文本：None 为空串，其余转为字符串"""
        if value is None:
            return ""
        return str(value)


__all__ = ["RecordMapper"]
