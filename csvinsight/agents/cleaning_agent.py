from typing import Dict, Any, Optional, List
from datetime import datetime, timezone
import json
import logging
import traceback
from pydantic import ValidationError

from .base_agent import BaseAgent
from ..config import settings
from ..data.loader import CsvLoader
from ..data.validator import DataValidator
from ..models.analysis import CleaningResponseModel
from ..utils.errors import CleaningError, LLMResponseError
from ..utils.llm_utils import (
    ERROR_CATEGORY_MESSAGES,
    LLMClient,
    classify_llm_error,
    extract_json_content,
)

logger = logging.getLogger(__name__)

CLEANING_SYSTEM_PROMPT = """You are a professional data cleaning expert. Your task is to analyze CSV data and provide cleaning recommendations.

You MUST respond with valid JSON in the following exact format:
{{
  "cleanedHeaders": ["header1", "header2", ...],
  "cleanedRows": [["cell1", "cell2", ...], ...],
  "changes": [
    {{"type": "header_rename", "original": "old_name", "new": "new_name", "reason": "explanation"}},
    {{"type": "value_fix", "row": 1, "column": "col_name", "original": "old_val", "new": "new_val", "reason": "explanation"}},
    {{"type": "missing_value", "row": 2, "column": "col_name", "action": "filled with mean/removed/marked", "reason": "explanation"}},
    {{"type": "duplicate_removed", "row": 3, "reason": "explanation"}}
  ],
  "summary": {{
    "totalChanges": 5,
    "headersRenamed": 2,
    "valuesFixed": 3,
    "missingValuesHandled": 1,
    "duplicatesRemoved": 0,
    "qualityScore": 85
  }}
}}

Rules:
1. Keep the same number of columns
2. Clean header names (remove special chars, standardize casing)
3. Handle missing values (fill with appropriate defaults or mark as N/A)
4. Remove exact duplicate rows
5. Fix obvious typos and formatting issues
6. Standardize date formats, numbers, etc.
7. Only include the first {max_rows} rows in cleanedRows for efficiency"""

CLEANING_RESPONSE_SCHEMA = {
    "type": "object",
    "properties": {
        "cleanedHeaders": {"type": "array", "items": {"type": "string"}},
        "cleanedRows": {"type": "array", "items": {"type": "array", "items": {"type": "string"}}},
        "changes": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "type": {"type": "string"},
                    "original": {"type": "string"},
                    "new": {"type": "string"},
                    "reason": {"type": "string"},
                    "row": {"type": "number"},
                    "column": {"type": "string"},
                    "action": {"type": "string"},
                },
                "required": ["type", "reason"],
                "additionalProperties": True,
            },
        },
        "summary": {
            "type": "object",
            "properties": {
                "totalChanges": {"type": "number"},
                "headersRenamed": {"type": "number"},
                "valuesFixed": {"type": "number"},
                "missingValuesHandled": {"type": "number"},
                "duplicatesRemoved": {"type": "number"},
                "qualityScore": {"type": "number"},
            },
            "required": ["totalChanges", "qualityScore"],
            "additionalProperties": True,
        },
    },
    "required": ["cleanedHeaders", "cleanedRows", "changes", "summary"],
    "additionalProperties": False,
}


class CleaningAgent(BaseAgent):
    """负责调用LLM清洗CSV数据并生成变更报告的智能体"""

    def __init__(self, llm_client: LLMClient,
                 sample_rows: Optional[int] = None,
                 max_rows: Optional[int] = None):
        super().__init__("Cleaning", llm_client)
        self.sample_rows = sample_rows or settings.CLEANING_SAMPLE_ROWS
        self.max_rows = max_rows or settings.CLEANING_MAX_ROWS

    async def process(self, input_data: Dict[str, Any], context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        清洗CSV数据

        Args:
            input_data: 包含 csv_content 和 headers 的字典
            context: 可选的上下文信息

        Returns:
            {"cleaned_csv": str, "report": dict}

        Raises:
            ValueError: 输入无效
            CleaningError: LLM调用失败或响应不符合要求，带错误类别
        """
        logger.info("=== CleaningAgent 开始处理 ===")
        if not await self.validate_input(input_data):
            logger.error("CleaningAgent 输入验证失败")
            raise ValueError("Invalid input data for CleaningAgent")

        headers: List[str] = input_data["headers"]
        parsed = CsvLoader.parse(input_data["csv_content"], quoted=True)
        original_stats = DataValidator.quick_stats(headers, parsed.rows)
        logger.info(f"清洗前统计: {original_stats}")

        try:
            content = await self.llm_client.complete_json(
                CLEANING_SYSTEM_PROMPT.format(max_rows=self.max_rows),
                self.build_user_prompt(headers, parsed.rows, original_stats),
                schema_name="data_cleaning_result",
                schema=CLEANING_RESPONSE_SCHEMA,
                strict=False,
            )
            result = self.parse_response(content)
        except LLMResponseError as e:
            logger.error(f"CleaningAgent: LLM响应无效: {e}")
            raise CleaningError("generic", f"Failed to parse AI response. Please try again. ({e})") from e
        except Exception as e:
            logger.error(f"CleaningAgent: LLM调用失败: {e}")
            logger.error(traceback.format_exc())
            category = classify_llm_error(e)
            raise CleaningError(category, ERROR_CATEGORY_MESSAGES[category]) from e

        cleaned_csv = CsvLoader.to_csv(result.cleanedHeaders, result.cleanedRows)
        if not cleaned_csv.strip():
            logger.error("CleaningAgent: 清洗后的CSV为空")
            raise CleaningError("generic", "AI returned an empty cleaning result. Please try again.")
        report = {
            "changes": result.report_changes(),
            "summary": result.report_summary(),
            "originalStats": original_stats,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

        logger.info(f"CleaningAgent 处理完成，共 {len(result.changes)} 处变更")
        return {"cleaned_csv": cleaned_csv, "report": report}

    def build_user_prompt(self, headers: List[str], rows: List[List[str]], original_stats: Dict[str, Any]) -> str:
        return f"""Please clean this CSV data and return the result as JSON:

Headers: {json.dumps(headers, ensure_ascii=False)}

Sample data (first {self.sample_rows} rows):
{json.dumps(rows[:self.sample_rows], ensure_ascii=False)}

Data statistics:
- Total rows: {original_stats['totalRows']}
- Total columns: {original_stats['totalColumns']}
- Empty values found: {original_stats['emptyValues']}
- Potential duplicate rows: {original_stats['duplicateRows']}"""

    @staticmethod
    def parse_response(content: Optional[str]) -> CleaningResponseModel:
        parsed = extract_json_content(content)
        if not isinstance(parsed, dict):
            raise LLMResponseError("LLM cleaning response is not a JSON object")
        try:
            return CleaningResponseModel.model_validate(parsed)
        except ValidationError as e:
            raise LLMResponseError(f"Invalid cleaning result in LLM response: {e}") from e
