import json
import logging
from typing import Dict, Any, Optional
from openai import AsyncOpenAI

from ..config import settings
from .errors import LLMResponseError

logger = logging.getLogger(__name__)

# 错误分类关键字 (substring -> category)，按顺序匹配
ERROR_CATEGORY_PATTERNS = [
    ("timeout", ("timeout", "timed out", "etimedout")),
    ("rate_limit", ("rate limit", "429")),
    ("network", ("network", "econnrefused", "connection")),
]

ERROR_CATEGORY_MESSAGES = {
    "timeout": "AI processing timed out. Please reduce data size or try again later.",
    "rate_limit": "AI service is busy. Please try again later.",
    "network": "Network error occurred. Please check your internet connection.",
    "generic": "An error occurred during data cleaning.",
}

# 创建全局LLM客户端实例
_llm_client_instance = None


def get_llm_client() -> "LLMClient":
    """获取全局LLM客户端实例"""
    global _llm_client_instance
    if _llm_client_instance is None:
        _llm_client_instance = LLMClient(
            api_key=settings.OPENAI_API_KEY,
            base_url=settings.OPENAI_BASE_URL,
            model=settings.LLM_MODEL,
            timeout=settings.LLM_TIMEOUT,
            max_tokens=settings.LLM_MAX_TOKENS,
        )
        logger.info(f"Created LLM client for model {settings.LLM_MODEL}")
    return _llm_client_instance


class LLMClient:
    """OpenAI兼容的对话补全客户端，要求返回符合JSON Schema的内容"""

    def __init__(self, api_key: str, base_url: str, model: str,
                 timeout: float = 120.0, max_tokens: int = 8192):
        self.api_key = api_key
        self.model = model
        self.max_tokens = max_tokens
        self._client = AsyncOpenAI(
            api_key=api_key or "missing",
            base_url=base_url,
            timeout=timeout,
            max_retries=0,
        )

    async def complete_json(self,
                            system_prompt: str,
                            user_prompt: str,
                            schema_name: str,
                            schema: Dict[str, Any],
                            strict: bool = True) -> str:
        """
        发送一次对话请求并返回模型的原始文本内容

        Args:
            system_prompt: 系统提示
            user_prompt: 用户提示
            schema_name: JSON Schema名称
            schema: 响应必须满足的JSON Schema
            strict: 是否启用严格模式

        Returns:
            LLM返回的文本（可能为空字符串）
        """
        if not self.api_key:
            raise LLMResponseError("LLM API key is not configured")

        response = await self._client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            response_format={
                "type": "json_schema",
                "json_schema": {
                    "name": schema_name,
                    "strict": strict,
                    "schema": schema,
                },
            },
            max_tokens=self.max_tokens,
        )

        if not response.choices:
            return ""
        return response.choices[0].message.content or ""


def extract_json_content(content: Optional[str]) -> Any:
    """
    从LLM响应中解析JSON，兼容markdown代码块包裹的情况

    Raises:
        LLMResponseError: 内容为空或不是合法JSON
    """
    if not content or not content.strip():
        raise LLMResponseError("No content in LLM response")

    content = content.strip()
    # 如果响应包含markdown代码块，提取其中的JSON
    if "```json" in content:
        content = content.split("```json")[1].split("```")[0].strip()
    elif content.startswith("```"):
        content = content.split("```")[1].split("```")[0].strip()

    try:
        return json.loads(content)
    except json.JSONDecodeError as e:
        logger.error(f"LLM返回的内容不是有效的JSON: {content[:500]}")
        raise LLMResponseError(f"Failed to parse LLM response as JSON: {e}") from e


def classify_llm_error(error: BaseException) -> str:
    """根据错误信息中的关键字粗略判断错误类别"""
    message = str(error).lower()
    for category, patterns in ERROR_CATEGORY_PATTERNS:
        if any(pattern in message for pattern in patterns):
            return category
    return "generic"
