from fastapi import APIRouter, HTTPException, Depends
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Dict, Any
import logging
import traceback

from .dependencies import get_current_user_id
from ..orchestrator.orchestrator import get_orchestrator

logger = logging.getLogger(__name__)

router = APIRouter()


class GenerateInsightsRequest(BaseModel):
    """洞察生成请求模型"""
    model_config = ConfigDict(populate_by_name=True)

    dataset_id: int = Field(alias="datasetId")
    csv_content: str = Field(alias="csvContent")
    headers: List[str]


@router.post("/generate")
async def generate_insights(
    request: GenerateInsightsRequest,
    user_id: int = Depends(get_current_user_id),
    orchestrator = Depends(get_orchestrator)
) -> Dict[str, Any]:
    """生成并替换数据集的AI洞察"""
    try:
        logger.info(f"Processing insight generation for dataset {request.dataset_id}")
        return await orchestrator.generate_insights(
            user_id, request.dataset_id, request.csv_content, request.headers
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error generating insights: {str(e)}")
        logger.error(traceback.format_exc())
        raise HTTPException(status_code=500, detail="Failed to generate insights")


@router.get("/{dataset_id}")
def list_insights(
    dataset_id: int,
    user_id: int = Depends(get_current_user_id),
    orchestrator = Depends(get_orchestrator)
) -> List[Dict[str, Any]]:
    """获取数据集的洞察列表"""
    return orchestrator.list_insights(user_id, dataset_id)
