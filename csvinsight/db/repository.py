import logging
from typing import Any, Callable, Dict, List, Optional, TypeVar
from sqlalchemy import select, delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from .database import get_session_factory
from .tables import ChartConfig, CsvDataset, DataCleaningResult, DataInsight
from ..models.analysis import InsightModel
from ..utils.errors import PersistenceUnavailableError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# 创建全局repository实例
_repository_instance = None


def get_repository() -> "Repository":
    """获取全局repository实例"""
    global _repository_instance
    if _repository_instance is None:
        _repository_instance = Repository(get_session_factory())
        logger.info("Created new repository instance")
    return _repository_instance


class Repository:
    """
    数据集及其衍生结果的持久化访问

    数据库不可用时，读操作记录警告并返回空结果；写操作抛出
    PersistenceUnavailableError，不允许静默丢弃用户提交的数据。
    """

    def __init__(self, session_factory: Optional[sessionmaker]):
        self.session_factory = session_factory

    def _read(self, operation: str, fn: Callable[[Session], T], default: T) -> T:
        if self.session_factory is None:
            logger.warning(f"[Database] Cannot {operation}: database not available")
            return default
        try:
            with self.session_factory() as db:
                return fn(db)
        except SQLAlchemyError as e:
            logger.warning(f"[Database] Cannot {operation}: {e}")
            return default

    def _write(self, operation: str, fn: Callable[[Session], T]) -> T:
        if self.session_factory is None:
            raise PersistenceUnavailableError("Database not available")
        with self.session_factory() as db:
            try:
                result = fn(db)
                db.commit()
                return result
            except SQLAlchemyError as e:
                db.rollback()
                logger.error(f"[Database] Failed to {operation}: {e}")
                raise PersistenceUnavailableError(f"Failed to {operation}") from e

    # ---- CSV Dataset ----

    def create_dataset(self, user_id: int, file_name: str, raw_csv: str,
                       headers: List[str], row_count: int) -> Dict[str, Any]:
        def op(db: Session):
            dataset = CsvDataset(
                user_id=user_id,
                file_name=file_name,
                raw_csv=raw_csv,
                headers=headers,
                row_count=row_count,
            )
            db.add(dataset)
            db.flush()
            db.refresh(dataset)
            return dataset.to_dict()
        return self._write("create dataset", op)

    def get_dataset(self, dataset_id: int, user_id: Optional[int] = None) -> Optional[Dict[str, Any]]:
        def op(db: Session):
            query = select(CsvDataset).where(CsvDataset.id == dataset_id)
            if user_id is not None:
                query = query.where(CsvDataset.user_id == user_id)
            dataset = db.execute(query).scalar_one_or_none()
            return dataset.to_dict() if dataset else None
        return self._read("get dataset", op, None)

    def list_user_datasets(self, user_id: int) -> List[Dict[str, Any]]:
        def op(db: Session):
            query = (
                select(CsvDataset)
                .where(CsvDataset.user_id == user_id)
                .order_by(CsvDataset.created_at.desc(), CsvDataset.id.desc())
            )
            return [dataset.to_dict() for dataset in db.execute(query).scalars()]
        return self._read("list datasets", op, [])

    def delete_dataset(self, dataset_id: int, user_id: int) -> bool:
        def op(db: Session):
            dataset = db.execute(
                select(CsvDataset).where(CsvDataset.id == dataset_id, CsvDataset.user_id == user_id)
            ).scalar_one_or_none()
            if dataset is None:
                return False
            db.delete(dataset)
            return True
        return self._write("delete dataset", op)

    # ---- Data Insights ----

    def delete_dataset_insights(self, dataset_id: int) -> int:
        def op(db: Session):
            result = db.execute(delete(DataInsight).where(DataInsight.dataset_id == dataset_id))
            return result.rowcount or 0
        return self._write("delete insights", op)

    def create_insights(self, dataset_id: int, insights: List[InsightModel]) -> int:
        def op(db: Session):
            for insight in insights:
                db.add(DataInsight(
                    dataset_id=dataset_id,
                    insight_type=insight.category,
                    title=insight.title,
                    content=insight.content,
                    confidence=insight.confidence,
                ))
            return len(insights)
        return self._write("create insights", op)

    def list_dataset_insights(self, dataset_id: int) -> List[Dict[str, Any]]:
        def op(db: Session):
            query = select(DataInsight).where(DataInsight.dataset_id == dataset_id).order_by(DataInsight.id)
            return [insight.to_dict() for insight in db.execute(query).scalars()]
        return self._read("list insights", op, [])

    # ---- Data Cleaning Results ----

    def create_cleaning_result(self, dataset_id: int, original_csv: str,
                               cleaned_csv: str, cleaning_report: Dict[str, Any]) -> Dict[str, Any]:
        def op(db: Session):
            result = DataCleaningResult(
                dataset_id=dataset_id,
                original_csv=original_csv,
                cleaned_csv=cleaned_csv,
                cleaning_report=cleaning_report,
            )
            db.add(result)
            db.flush()
            db.refresh(result)
            return result.to_dict()
        return self._write("create cleaning result", op)

    def get_latest_cleaning_result(self, dataset_id: int) -> Optional[Dict[str, Any]]:
        def op(db: Session):
            query = (
                select(DataCleaningResult)
                .where(DataCleaningResult.dataset_id == dataset_id)
                .order_by(DataCleaningResult.created_at.desc(), DataCleaningResult.id.desc())
                .limit(1)
            )
            result = db.execute(query).scalar_one_or_none()
            return result.to_dict() if result else None
        return self._read("get cleaning result", op, None)

    # ---- Chart Configuration ----

    def create_chart_config(self, dataset_id: int, **fields) -> Dict[str, Any]:
        def op(db: Session):
            config = ChartConfig(dataset_id=dataset_id, **fields)
            db.add(config)
            db.flush()
            db.refresh(config)
            return config.to_dict()
        return self._write("create chart config", op)

    def get_chart_config(self, config_id: int) -> Optional[Dict[str, Any]]:
        def op(db: Session):
            config = db.get(ChartConfig, config_id)
            return config.to_dict() if config else None
        return self._read("get chart config", op, None)

    def list_dataset_chart_configs(self, dataset_id: int) -> List[Dict[str, Any]]:
        def op(db: Session):
            query = select(ChartConfig).where(ChartConfig.dataset_id == dataset_id).order_by(ChartConfig.id)
            return [config.to_dict() for config in db.execute(query).scalars()]
        return self._read("list chart configs", op, [])

    def update_chart_config(self, config_id: int, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        def op(db: Session):
            config = db.get(ChartConfig, config_id)
            if config is None:
                return None
            for key, value in updates.items():
                if key in ChartConfig.UPDATABLE_FIELDS:
                    setattr(config, key, value)
            db.flush()
            db.refresh(config)
            return config.to_dict()
        return self._write("update chart config", op)
