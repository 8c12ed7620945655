from fastapi import APIRouter, HTTPException, Depends
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Dict, Any, Optional
import logging
import traceback

from .dependencies import get_current_user_id
from ..orchestrator.orchestrator import get_orchestrator

logger = logging.getLogger(__name__)

router = APIRouter()


class CleanRequest(BaseModel):
    """数据清洗请求模型"""
    model_config = ConfigDict(populate_by_name=True)

    dataset_id: int = Field(alias="datasetId")
    csv_content: str = Field(alias="csvContent")
    headers: List[str]


class ExportRequest(BaseModel):
    """清洗结果导出请求模型"""
    model_config = ConfigDict(populate_by_name=True)

    dataset_id: int = Field(alias="datasetId")
    new_file_name: Optional[str] = Field(default=None, alias="newFileName")


@router.post("/clean")
async def clean_dataset(
    request: CleanRequest,
    user_id: int = Depends(get_current_user_id),
    orchestrator = Depends(get_orchestrator)
) -> Dict[str, Any]:
    """使用AI清洗数据并保存清洗结果"""
    try:
        return await orchestrator.clean_dataset(
            user_id, request.dataset_id, request.csv_content, request.headers
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error cleaning data: {str(e)}")
        logger.error(traceback.format_exc())
        raise HTTPException(
            status_code=500,
            detail={"message": "An error occurred during data cleaning.", "category": "generic"}
        )


@router.get("/{dataset_id}/latest")
def get_latest_cleaning_result(
    dataset_id: int,
    user_id: int = Depends(get_current_user_id),
    orchestrator = Depends(get_orchestrator)
) -> Optional[Dict[str, Any]]:
    """获取数据集最近一次的清洗结果，没有时返回null"""
    return orchestrator.get_latest_cleaning_result(user_id, dataset_id)


@router.post("/export")
def export_cleaned_dataset(
    request: ExportRequest,
    user_id: int = Depends(get_current_user_id),
    orchestrator = Depends(get_orchestrator)
) -> Dict[str, Any]:
    """把清洗后的CSV另存为新的数据集"""
    try:
        return orchestrator.export_cleaned_dataset(user_id, request.dataset_id, request.new_file_name)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error exporting cleaned dataset: {str(e)}")
        logger.error(traceback.format_exc())
        raise HTTPException(status_code=500, detail=f"Error exporting cleaned dataset: {str(e)}")
