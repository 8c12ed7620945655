from typing import Dict, Any, Optional, List
import json
import logging
from pydantic import ValidationError

from .base_agent import BaseAgent
from ..config import settings
from ..data.loader import CsvLoader
from ..data.processor import DataProcessor
from ..models.analysis import INSIGHT_CATEGORIES, InsightBatchModel, InsightModel
from ..utils.errors import LLMResponseError
from ..utils.llm_utils import LLMClient, extract_json_content

logger = logging.getLogger(__name__)

INSIGHT_SYSTEM_PROMPT = """You are a professional data analyst and business intelligence expert.
Analyze the provided CSV data comprehensively and generate detailed, multi-faceted insights.

Provide analysis in the following categories:
1. OVERVIEW: Dataset structure, size, and composition
2. DATA QUALITY: Missing values, outliers, data consistency
3. STATISTICAL ANALYSIS: Key metrics, distributions, correlations
4. TRENDS & PATTERNS: Temporal trends, seasonal patterns, cycles
5. ANOMALIES: Unusual values, outliers, data inconsistencies
6. BUSINESS INSIGHTS: Actionable insights for decision-making
7. RECOMMENDATIONS: Specific, actionable next steps
8. RISKS & CONSIDERATIONS: Data quality issues, limitations

For each insight, provide:
- A clear, professional title
- Detailed explanation with specific numbers and percentages
- Business relevance and impact
- Confidence level (0-100) based on data completeness
- Recommended action

Format your response as a JSON object with an "insights" array of objects containing:
{ title, content, category, confidence, actionable }

Categories: overview, quality, statistics, trends, anomalies, insights, recommendations, risks"""

INSIGHT_RESPONSE_SCHEMA = {
    "type": "object",
    "properties": {
        "insights": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "title": {"type": "string"},
                    "content": {"type": "string"},
                    "category": {"type": "string", "enum": list(INSIGHT_CATEGORIES)},
                    "confidence": {"type": "integer", "minimum": 0, "maximum": 100},
                    "actionable": {"type": "boolean"},
                },
                "required": ["title", "content", "category", "confidence", "actionable"],
                "additionalProperties": False,
            },
        }
    },
    "required": ["insights"],
    "additionalProperties": False,
}


class InsightAgent(BaseAgent):
    """负责调用LLM生成结构化数据洞察的智能体"""

    def __init__(self, llm_client: LLMClient, sample_rows: Optional[int] = None):
        super().__init__("Insight", llm_client)
        self.sample_rows = sample_rows or settings.INSIGHT_SAMPLE_ROWS

    async def process(self, input_data: Dict[str, Any], context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        分析CSV数据并返回LLM生成的洞察列表

        Args:
            input_data: 包含 csv_content 和 headers 的字典
            context: 可选的上下文信息

        Returns:
            {"insights": [InsightModel, ...], "data_structure": DataStructure}

        Raises:
            ValueError: 输入无效
            LLMResponseError: LLM调用失败或响应不符合要求
        """
        logger.info("=== InsightAgent 开始处理 ===")
        if not await self.validate_input(input_data):
            logger.error("InsightAgent 输入验证失败")
            raise ValueError("Invalid input data for InsightAgent")

        csv_content: str = input_data["csv_content"]
        headers: List[str] = input_data["headers"]

        parsed = CsvLoader.parse(csv_content)
        data_structure = DataProcessor.analyze_structure(headers, parsed.rows)
        logger.info(f"数据结构分析完成: {data_structure.total_rows} 行, {data_structure.total_columns} 列")

        user_prompt = self.build_user_prompt(csv_content, headers, data_structure.model_dump())
        content = await self.llm_client.complete_json(
            INSIGHT_SYSTEM_PROMPT,
            user_prompt,
            schema_name="comprehensive_data_analysis",
            schema=INSIGHT_RESPONSE_SCHEMA,
            strict=True,
        )
        insights = self.parse_response(content)

        logger.info(f"InsightAgent 处理完成，共 {len(insights)} 条洞察")
        return {"insights": insights, "data_structure": data_structure}

    def build_user_prompt(self, csv_content: str, headers: List[str], data_structure: Dict[str, Any]) -> str:
        lines = CsvLoader.split_lines(csv_content)
        data_sample = "\n".join(lines[:self.sample_rows + 1])
        return f"""Analyze this CSV data comprehensively:

Headers: {', '.join(headers)}
Total Rows: {data_structure['total_rows']}
Total Columns: {len(headers)}

Data Structure Analysis:
{json.dumps(data_structure, indent=2, ensure_ascii=False)}

Data Sample (first {self.sample_rows} rows):
{data_sample}

Provide 8-12 detailed, professional insights covering all analysis categories."""

    @staticmethod
    def parse_response(content: Optional[str]) -> List[InsightModel]:
        """严格解析LLM响应，任何字段不匹配都视为失败"""
        parsed = extract_json_content(content)
        if not isinstance(parsed, dict) or "insights" not in parsed:
            raise LLMResponseError("LLM response is missing the 'insights' field")
        try:
            batch = InsightBatchModel.model_validate(parsed)
        except ValidationError as e:
            logger.error(f"InsightAgent: LLM响应未通过校验: {e}")
            raise LLMResponseError(f"Invalid insights in LLM response: {e}") from e
        return batch.insights
