from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Literal, Optional

INSIGHT_CATEGORIES = (
    "overview",
    "quality",
    "statistics",
    "trends",
    "anomalies",
    "insights",
    "recommendations",
    "risks",
)

InsightCategory = Literal[
    "overview",
    "quality",
    "statistics",
    "trends",
    "anomalies",
    "insights",
    "recommendations",
    "risks",
]


class Statistics(BaseModel):
    """数值列的描述统计"""

    mean: float
    median: float
    std_dev: float
    variance: float
    min: float
    max: float
    q1: float
    q3: float
    iqr: float


class ColumnDescriptor(BaseModel):
    """列描述 (derived per request, never persisted)"""

    name: str
    type: Literal["numeric", "categorical"]
    unique_count: int
    missing_count: int
    missing_percent: str
    statistics: Optional[Statistics] = None


class DataStructure(BaseModel):
    """数据结构摘要，作为LLM提示词的上下文"""

    total_rows: int
    total_columns: int
    columns: List[ColumnDescriptor] = Field(default_factory=list)


class InsightModel(BaseModel):
    """LLM返回的单条洞察，字段不匹配时直接拒绝"""

    model_config = ConfigDict(extra="forbid", strict=True)

    title: str
    content: str
    category: InsightCategory
    confidence: int = Field(ge=0, le=100)
    actionable: bool


class InsightBatchModel(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)

    insights: List[InsightModel]


class CleaningChangeModel(BaseModel):
    """清洗变更记录，除 type 和 reason 外允许额外字段"""

    model_config = ConfigDict(extra="allow")

    type: str
    reason: str


class CleaningSummaryModel(BaseModel):
    model_config = ConfigDict(extra="allow")

    totalChanges: float
    qualityScore: float


class CleaningResponseModel(BaseModel):
    """LLM返回的清洗结果"""

    model_config = ConfigDict(extra="forbid", coerce_numbers_to_str=True)

    cleanedHeaders: List[str] = Field(min_length=1)
    cleanedRows: List[List[str]]
    changes: List[CleaningChangeModel]
    summary: CleaningSummaryModel

    def report_changes(self) -> List[Dict[str, Any]]:
        return [change.model_dump() for change in self.changes]

    def report_summary(self) -> Dict[str, Any]:
        summary = self.summary.model_dump()
        # 整数值保持为int，便于前端展示
        return {
            key: int(value) if isinstance(value, float) and value.is_integer() else value
            for key, value in summary.items()
        }
