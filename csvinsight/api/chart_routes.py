from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from typing import Dict, Any, List, Literal, Optional

from .dependencies import get_current_user_id
from ..orchestrator.orchestrator import Orchestrator, get_orchestrator

router = APIRouter()

ChartType = Literal["bar", "line", "pie", "doughnut", "multiBar"]


class ChartConfigCreate(BaseModel):
    """图表配置创建模型"""
    model_config = ConfigDict(populate_by_name=True)

    dataset_id: int = Field(alias="datasetId")
    chart_type: ChartType = Field(alias="chartType")
    label_column: int = Field(alias="labelColumn", ge=0)
    datasets: List[int]
    dataset_colors: Dict[str, str] = Field(alias="datasetColors")
    palette: str = "vibrant"
    base_color: str = Field(default="#6b76ff", alias="baseColor")
    canvas_bg: str = Field(default="#0b0f20", alias="canvasBg")
    text_color: str = Field(default="#f1f3ff", alias="textColor")


class ChartConfigUpdate(BaseModel):
    """图表配置更新模型，只更新提供的字段"""
    model_config = ConfigDict(populate_by_name=True)

    chart_type: Optional[ChartType] = Field(default=None, alias="chartType")
    label_column: Optional[int] = Field(default=None, alias="labelColumn", ge=0)
    datasets: Optional[List[int]] = None
    dataset_colors: Optional[Dict[str, str]] = Field(default=None, alias="datasetColors")
    palette: Optional[str] = None
    base_color: Optional[str] = Field(default=None, alias="baseColor")
    canvas_bg: Optional[str] = Field(default=None, alias="canvasBg")
    text_color: Optional[str] = Field(default=None, alias="textColor")


@router.post("")
def create_chart_config(
    config: ChartConfigCreate,
    user_id: int = Depends(get_current_user_id),
    orchestrator: Orchestrator = Depends(get_orchestrator)
):
    """保存图表配置"""
    fields = config.model_dump(exclude={"dataset_id"})
    return orchestrator.create_chart_config(user_id, config.dataset_id, **fields)


@router.get("/dataset/{dataset_id}")
def list_chart_configs(
    dataset_id: int,
    user_id: int = Depends(get_current_user_id),
    orchestrator: Orchestrator = Depends(get_orchestrator)
):
    return orchestrator.list_chart_configs(user_id, dataset_id)


@router.get("/{config_id}")
def get_chart_config(
    config_id: int,
    user_id: int = Depends(get_current_user_id),
    orchestrator: Orchestrator = Depends(get_orchestrator)
):
    return orchestrator.get_chart_config(user_id, config_id)


@router.patch("/{config_id}")
def update_chart_config(
    config_id: int,
    updates: ChartConfigUpdate,
    user_id: int = Depends(get_current_user_id),
    orchestrator: Orchestrator = Depends(get_orchestrator)
):
    """更新图表配置"""
    return orchestrator.update_chart_config(user_id, config_id, updates.model_dump(exclude_none=True))
