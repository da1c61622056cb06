"""
LLM 代理模块（Qwen/DashScope）

职责：
- 将查询结果汇总为数据摘要，连同分析角色提示词一起发送给模型。
- 返回模型生成的 markdown 分析文本。
- 在未配置 API Key、请求失败或超时情况下进行错误降级与日志埋点，不做重试。

作者: Tom
创建时间: 2025-11-21T11:40:19+08:00 (Asia/Shanghai)
"""

import time
from typing import Any, Dict, List, Optional

import requests
from loguru import logger

from analytics.aggregation import EMPTY_DATASET_MESSAGE
from analytics.insights import CONTEXT_LABELS, build_insight_context
from config.settings import settings, validate_api_key, get_model_config
from sisreg.models import IndexType, QueryMode


DASHSCOPE_URL = "https://dashscope.aliyuncs.com/api/v1/services/aigc/text-generation/generation"

GENERATION_ERROR_MESSAGE = "Erro ao gerar insights. Tente novamente."
NO_CONTENT_MESSAGE = "Não foi possível gerar insights."


def compose_system_prompt(index_label: str) -> str:
    return (
        "Você é um especialista em regulação de saúde pública e análise de dados do SISREG "
        "(Sistema Nacional de Regulação)."
        f"\nSua tarefa é analisar dados de {index_label} e fornecer insights úteis para gestores de saúde."
        "\nResponda sempre em português brasileiro, de forma clara e objetiva."
        "\nFoque em:"
        "\n1. Padrões identificados nos dados"
        "\n2. Possíveis gargalos ou problemas"
        "\n3. Sugestões de otimização do fluxo de regulação"
        "\n4. Alertas sobre situações que requerem atenção"
        "\nSeja conciso mas informativo. Use formatação markdown para melhor legibilidade."
    )


class InsightProxy:
    """Qwen/DashScope 代理。

    注意：
    - 依赖 `config.settings` 中的 `dashscope_api_key` 与 `default_model`。
    - 返回结构固定为 {"ok", "insights", "error"}。
    """

    def __init__(self, timeout_ms: Optional[int] = None) -> None:
        self.timeout_ms = timeout_ms or settings.llm_timeout_ms

    def _call_llm(self, messages: List[Dict[str, str]]) -> Optional[str]:
        """调用 DashScope 文本生成接口，返回文本；失败返回 None"""
        if not validate_api_key():
            logger.warning("InsightProxy: 未配置 API Key，跳过 LLM 调用")
            return None

        headers = {
            "Authorization": f"Bearer {settings.dashscope_api_key}",
            "Content-Type": "application/json",
        }
        model_config = get_model_config()
        payload = {
            "model": model_config["model"],
            "input": {"messages": messages},
            "parameters": {
                "max_tokens": model_config["max_tokens"],
                "temperature": model_config["temperature"],
                "result_format": "message",
            },
        }

        try:
            start = time.time()
            resp = requests.post(DASHSCOPE_URL, headers=headers, json=payload, timeout=self.timeout_ms / 1000.0)
            latency_ms = int((time.time() - start) * 1000)
            logger.info(f"InsightProxy: LLM 调用完成，耗时 {latency_ms}ms，status={resp.status_code}")

            if resp.status_code != 200:
                logger.warning(f"InsightProxy: 非 200 响应，body={resp.text[:200]}")
                return None
            data = resp.json()
        except (requests.RequestException, ValueError) as e:
            logger.error(f"InsightProxy: 调用失败/超时：{e}")
            return None

        # 兼容 output.choices[0].message.content 与 output.text 两种返回结构
        output = data.get("output") or {}
        choices = output.get("choices") or [{}]
        content = (choices[0].get("message") or {}).get("content") or output.get("text")
        return content if isinstance(content, str) else NO_CONTENT_MESSAGE

    def generate(
        self,
        records: List[Dict[str, Any]],
        index_type: IndexType,
        mode: QueryMode,
        date_start: Optional[str] = None,
        date_end: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        生成数据分析文本

        Returns:
            {"ok": bool, "insights": str, "error": Optional[str]}
        """
        if not records:
            return {"ok": False, "insights": "", "error": EMPTY_DATASET_MESSAGE}

        index_label = CONTEXT_LABELS[index_type]
        context = build_insight_context(records, index_type, mode, date_start, date_end)
        messages = [
            {"role": "system", "content": compose_system_prompt(index_label)},
            {
                "role": "user",
                "content": f"Analise os seguintes dados de {index_label} e forneça insights relevantes:\n\n{context}",
            },
        ]

        logger.info(f"InsightProxy: 生成分析 {index_type.value}/{mode.value} 记录={len(records)}")
        content = self._call_llm(messages)
        if content is None:
            return {"ok": False, "insights": "", "error": GENERATION_ERROR_MESSAGE}
        return {"ok": True, "insights": content, "error": None}


__all__ = ["InsightProxy", "compose_system_prompt", "DASHSCOPE_URL", "GENERATION_ERROR_MESSAGE"]
