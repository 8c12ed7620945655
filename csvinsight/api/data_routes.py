from fastapi import APIRouter, UploadFile, File, HTTPException, Depends
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, ConfigDict, Field
from typing import Dict, Any, List
import logging
import traceback

from .dependencies import get_current_user_id
from ..config import settings
from ..data.loader import CsvLoader
from ..orchestrator.orchestrator import get_orchestrator

logger = logging.getLogger(__name__)

router = APIRouter()


class UploadRequest(BaseModel):
    """数据集上传请求模型"""
    model_config = ConfigDict(populate_by_name=True)

    file_name: str = Field(alias="fileName")
    csv_content: str = Field(alias="csvContent")
    headers: List[str]
    row_count: int = Field(alias="rowCount", ge=0)


@router.post("/upload")
def upload_dataset(
    request: UploadRequest,
    user_id: int = Depends(get_current_user_id),
    orchestrator = Depends(get_orchestrator)
) -> Dict[str, Any]:
    """保存客户端已解析的CSV数据集"""
    try:
        logger.info(f"开始处理数据集上传: {request.file_name}")
        return orchestrator.upload_dataset(
            user_id, request.file_name, request.csv_content, request.headers, request.row_count
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"数据集上传错误: {str(e)}")
        logger.error(traceback.format_exc())
        raise HTTPException(status_code=500, detail=f"Error uploading dataset: {str(e)}")


@router.post("/upload-file")
async def upload_dataset_file(
    file: UploadFile = File(...),
    user_id: int = Depends(get_current_user_id),
    orchestrator = Depends(get_orchestrator)
) -> Dict[str, Any]:
    """
    上传CSV文件，由服务端解析表头和行数
    """
    logger.info(f"开始处理文件上传: {file.filename}，Content-Type: {file.content_type}")

    if not file.filename or not file.filename.lower().endswith(".csv"):
        logger.error(f"不支持的文件类型: {file.filename}")
        raise HTTPException(status_code=400, detail="Only CSV files are supported")

    content = await file.read()
    if len(content) > settings.MAX_UPLOAD_SIZE:
        logger.error(f"文件过大: {file.filename}")
        raise HTTPException(status_code=400, detail="File size must not exceed the upload limit")

    try:
        text = CsvLoader.decode(content)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        return await run_in_threadpool(orchestrator.upload_csv_text, user_id, file.filename, text)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"文件处理错误: {str(e)}")
        logger.error(traceback.format_exc())
        raise HTTPException(status_code=500, detail=f"Error uploading file: {str(e)}")


@router.get("")
def list_datasets(
    user_id: int = Depends(get_current_user_id),
    orchestrator = Depends(get_orchestrator)
) -> List[Dict[str, Any]]:
    """列出当前用户的数据集"""
    return orchestrator.list_datasets(user_id)


@router.get("/{dataset_id}")
def get_dataset(
    dataset_id: int,
    user_id: int = Depends(get_current_user_id),
    orchestrator = Depends(get_orchestrator)
) -> Dict[str, Any]:
    return orchestrator.get_dataset(user_id, dataset_id)


@router.delete("/{dataset_id}")
def delete_dataset(
    dataset_id: int,
    user_id: int = Depends(get_current_user_id),
    orchestrator = Depends(get_orchestrator)
) -> Dict[str, Any]:
    return orchestrator.delete_dataset(user_id, dataset_id)


@router.get("/{dataset_id}/structure")
def get_data_structure(
    dataset_id: int,
    user_id: int = Depends(get_current_user_id),
    orchestrator = Depends(get_orchestrator)
) -> Dict[str, Any]:
    """获取数据结构摘要（列类型、缺失值和数值统计）"""
    try:
        return orchestrator.get_data_structure(user_id, dataset_id)
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
