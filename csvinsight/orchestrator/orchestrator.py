from typing import Dict, Any, List, Optional
from fastapi import HTTPException
import logging
import traceback

from ..agents.insight_agent import InsightAgent
from ..agents.cleaning_agent import CleaningAgent
from ..data.loader import CsvLoader
from ..data.processor import DataProcessor
from ..data.validator import DataValidator
from ..db.repository import Repository, get_repository
from ..utils.errors import CleaningError, PersistenceUnavailableError
from ..utils.llm_utils import LLMClient, get_llm_client

logger = logging.getLogger(__name__)

# 创建全局orchestrator实例
_orchestrator_instance = None


def get_orchestrator():
    """获取全局orchestrator实例"""
    global _orchestrator_instance
    if _orchestrator_instance is None:
        _orchestrator_instance = Orchestrator(get_repository(), get_llm_client())
        logger.info("Created new orchestrator instance")
    return _orchestrator_instance


class Orchestrator:
    """
    协调CSV解析、数据摘要、LLM智能体和持久化层，对应每一个API操作
    """

    def __init__(self, repository: Repository, llm_client: LLMClient):
        self.repository = repository
        self.insight_agent = InsightAgent(llm_client)
        self.cleaning_agent = CleaningAgent(llm_client)
        logger.info("Orchestrator initialized")

    # ---- 数据集 ----

    def _require_csv(self, csv_content: Optional[str], headers: Optional[List[str]] = None) -> None:
        is_valid, details = DataValidator.validate_csv_content(csv_content, headers)
        if not is_valid:
            message = details["errors"][0]["message"]
            raise HTTPException(status_code=400, detail=message)
        for warning in details["warnings"]:
            logger.warning(f"CSV validation warning: {warning['message']}")

    def _require_dataset(self, user_id: int, dataset_id: int) -> Dict[str, Any]:
        dataset = self.repository.get_dataset(dataset_id, user_id=user_id)
        if not dataset:
            raise HTTPException(status_code=404, detail="Dataset not found")
        return dataset

    def _write(self, operation, *args, **kwargs):
        """执行写操作，数据库不可用时转换为503"""
        try:
            return operation(*args, **kwargs)
        except PersistenceUnavailableError as e:
            logger.error(f"Persistence error: {str(e)}")
            raise HTTPException(status_code=503, detail=str(e))

    def upload_dataset(self, user_id: int, file_name: str, csv_content: str,
                       headers: List[str], row_count: int) -> Dict[str, Any]:
        """保存上传的数据集并返回其标识"""
        self._require_csv(csv_content, headers)
        dataset = self._write(
            self.repository.create_dataset, user_id, file_name, csv_content, headers, row_count
        )
        logger.info(f"Stored dataset {dataset['id']} ({file_name}, {row_count} rows) for user {user_id}")
        return {"id": dataset["id"]}

    def upload_csv_text(self, user_id: int, file_name: str, csv_content: str) -> Dict[str, Any]:
        """服务端解析CSV得到表头和行数后保存"""
        self._require_csv(csv_content)
        parsed = CsvLoader.parse(csv_content, quoted=True)
        result = self.upload_dataset(user_id, file_name, csv_content, parsed.headers, parsed.row_count)
        return {
            "id": result["id"],
            "fileName": file_name,
            "headers": parsed.headers,
            "rowCount": parsed.row_count,
        }

    def list_datasets(self, user_id: int) -> List[Dict[str, Any]]:
        return self.repository.list_user_datasets(user_id)

    def get_dataset(self, user_id: int, dataset_id: int) -> Dict[str, Any]:
        return self._require_dataset(user_id, dataset_id)

    def delete_dataset(self, user_id: int, dataset_id: int) -> Dict[str, Any]:
        deleted = self._write(self.repository.delete_dataset, dataset_id, user_id)
        if not deleted:
            raise HTTPException(status_code=404, detail="Dataset not found")
        logger.info(f"Deleted dataset {dataset_id} for user {user_id}")
        return {"success": True}

    def get_data_structure(self, user_id: int, dataset_id: int) -> Dict[str, Any]:
        """对已保存的CSV重新计算数据结构摘要"""
        dataset = self._require_dataset(user_id, dataset_id)
        parsed = CsvLoader.parse(dataset["rawCsv"])
        return DataProcessor.analyze_structure(dataset["headers"], parsed.rows).model_dump()

    # ---- 数据洞察 ----

    async def generate_insights(self, user_id: int, dataset_id: int,
                                csv_content: str, headers: List[str]) -> Dict[str, Any]:
        """
        调用LLM生成洞察，并整体替换该数据集已有的洞察

        Returns:
            {"success": True, "count": n}
        """
        self._require_csv(csv_content, headers)
        self._require_dataset(user_id, dataset_id)

        try:
            logger.info(f"Generating insights for dataset {dataset_id}")
            result = await self.insight_agent.process({"csv_content": csv_content, "headers": headers})
            insights = result["insights"]

            # 先删除旧洞察再插入新的一批（两条独立语句）
            self.repository.delete_dataset_insights(dataset_id)
            count = self.repository.create_insights(dataset_id, insights)

            logger.info(f"Stored {count} insights for dataset {dataset_id}")
            return {"success": True, "count": count}
        except Exception as e:
            logger.error(f"Error generating insights: {str(e)}")
            logger.error(traceback.format_exc())
            raise HTTPException(status_code=500, detail="Failed to generate insights")

    def list_insights(self, user_id: int, dataset_id: int) -> List[Dict[str, Any]]:
        self._require_dataset(user_id, dataset_id)
        return self.repository.list_dataset_insights(dataset_id)

    # ---- 数据清洗 ----

    async def clean_dataset(self, user_id: int, dataset_id: int,
                            csv_content: str, headers: List[str]) -> Dict[str, Any]:
        """
        调用LLM清洗数据，保存一条清洗结果

        Returns:
            {"success": True, "cleanedCsv": str, "report": dict}
        """
        self._require_csv(csv_content, headers)
        self._require_dataset(user_id, dataset_id)

        try:
            logger.info(f"Cleaning dataset {dataset_id}")
            result = await self.cleaning_agent.process({"csv_content": csv_content, "headers": headers})
        except CleaningError as e:
            logger.error(f"Error cleaning data ({e.category}): {e.message}")
            raise HTTPException(status_code=500, detail={"message": e.message, "category": e.category})

        self._write(
            self.repository.create_cleaning_result,
            dataset_id, csv_content, result["cleaned_csv"], result["report"],
        )

        return {
            "success": True,
            "cleanedCsv": result["cleaned_csv"],
            "report": result["report"],
        }

    def get_latest_cleaning_result(self, user_id: int, dataset_id: int) -> Optional[Dict[str, Any]]:
        self._require_dataset(user_id, dataset_id)
        return self.repository.get_latest_cleaning_result(dataset_id)

    def export_cleaned_dataset(self, user_id: int, dataset_id: int,
                               new_file_name: Optional[str] = None) -> Dict[str, Any]:
        """把最新的清洗结果另存为当前用户的新数据集"""
        cleaning_result = self.repository.get_latest_cleaning_result(dataset_id)
        if not cleaning_result:
            raise HTTPException(
                status_code=404,
                detail="Cleaning result not found. Please run data cleaning first."
            )

        original_dataset = self.repository.get_dataset(dataset_id, user_id=user_id)
        if not original_dataset:
            raise HTTPException(status_code=404, detail="Original dataset not found.")

        cleaned_csv = cleaning_result["cleanedCsv"]
        if not cleaned_csv or not cleaned_csv.strip():
            raise HTTPException(
                status_code=422,
                detail="Cleaning result is empty. Please run data cleaning again."
            )
        lines = CsvLoader.split_lines(cleaned_csv)
        headers = CsvLoader.split_quoted_line(lines[0])
        row_count = len(lines) - 1

        file_name = new_file_name or f"cleaned_{original_dataset['fileName']}"

        dataset = self._write(
            self.repository.create_dataset, user_id, file_name, cleaned_csv, headers, row_count
        )
        logger.info(f"Exported cleaning result of dataset {dataset_id} as dataset {dataset['id']}")

        return {
            "success": True,
            "datasetId": dataset["id"],
            "fileName": file_name,
            "rowCount": row_count,
            "message": f'Cleaned dataset "{file_name}" has been saved.',
        }

    # ---- 图表配置 ----

    def create_chart_config(self, user_id: int, dataset_id: int, **fields) -> Dict[str, Any]:
        self._require_dataset(user_id, dataset_id)
        return self._write(self.repository.create_chart_config, dataset_id, **fields)

    def list_chart_configs(self, user_id: int, dataset_id: int) -> List[Dict[str, Any]]:
        self._require_dataset(user_id, dataset_id)
        return self.repository.list_dataset_chart_configs(dataset_id)

    def get_chart_config(self, user_id: int, config_id: int) -> Dict[str, Any]:
        config = self.repository.get_chart_config(config_id)
        if not config or not self.repository.get_dataset(config["datasetId"], user_id=user_id):
            raise HTTPException(status_code=404, detail="Chart config not found")
        return config

    def update_chart_config(self, user_id: int, config_id: int, updates: Dict[str, Any]) -> Dict[str, Any]:
        self.get_chart_config(user_id, config_id)
        config = self._write(self.repository.update_chart_config, config_id, updates)
        if not config:
            raise HTTPException(status_code=404, detail="Chart config not found")
        return {"success": True, "config": config}
