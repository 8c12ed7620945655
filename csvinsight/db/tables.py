"""
SQLAlchemy models for uploaded datasets and their derived results.
"""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


def _isoformat(value):
    return value.isoformat() if value is not None else None


class CsvDataset(Base):
    """上传的CSV数据集"""
    __tablename__ = "csv_datasets"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=False, index=True)
    file_name = Column(String(255), nullable=False)
    raw_csv = Column(Text, nullable=False)
    headers = Column(JSON, nullable=False)
    row_count = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    # Relations
    insights = relationship("DataInsight", back_populates="dataset", cascade="all, delete-orphan")
    cleaning_results = relationship("DataCleaningResult", back_populates="dataset", cascade="all, delete-orphan")
    chart_configs = relationship("ChartConfig", back_populates="dataset", cascade="all, delete-orphan")

    def to_dict(self):
        return {
            "id": self.id,
            "userId": self.user_id,
            "fileName": self.file_name,
            "rawCsv": self.raw_csv,
            "headers": self.headers,
            "rowCount": self.row_count,
            "createdAt": _isoformat(self.created_at),
            "updatedAt": _isoformat(self.updated_at),
        }

    def __repr__(self):
        return f"<CsvDataset(id={self.id}, file_name='{self.file_name}', rows={self.row_count})>"


class DataInsight(Base):
    """LLM生成的数据洞察"""
    __tablename__ = "data_insights"

    id = Column(Integer, primary_key=True, autoincrement=True)
    dataset_id = Column(Integer, ForeignKey("csv_datasets.id", ondelete="CASCADE"), nullable=False, index=True)
    insight_type = Column(String(100), nullable=False)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    confidence = Column(Integer, nullable=False, default=0)  # 0-100
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    dataset = relationship("CsvDataset", back_populates="insights")

    def to_dict(self):
        return {
            "id": self.id,
            "datasetId": self.dataset_id,
            "insightType": self.insight_type,
            "title": self.title,
            "content": self.content,
            "confidence": self.confidence,
            "createdAt": _isoformat(self.created_at),
        }


class DataCleaningResult(Base):
    """数据清洗结果，每次清洗新增一条，不覆盖旧结果"""
    __tablename__ = "data_cleaning_results"

    id = Column(Integer, primary_key=True, autoincrement=True)
    dataset_id = Column(Integer, ForeignKey("csv_datasets.id", ondelete="CASCADE"), nullable=False, index=True)
    original_csv = Column(Text, nullable=False)
    cleaned_csv = Column(Text, nullable=False)
    cleaning_report = Column(JSON, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    dataset = relationship("CsvDataset", back_populates="cleaning_results")

    def to_dict(self):
        return {
            "id": self.id,
            "datasetId": self.dataset_id,
            "originalCsv": self.original_csv,
            "cleanedCsv": self.cleaned_csv,
            "cleaningReport": self.cleaning_report,
            "createdAt": _isoformat(self.created_at),
        }


class ChartConfig(Base):
    """图表配置，仅用于前端展示"""
    __tablename__ = "chart_configs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    dataset_id = Column(Integer, ForeignKey("csv_datasets.id", ondelete="CASCADE"), nullable=False, index=True)
    chart_type = Column(String(50), nullable=False)  # bar, line, pie, doughnut, multiBar
    label_column = Column(Integer, nullable=False)
    datasets = Column(JSON, nullable=False)
    dataset_colors = Column(JSON, nullable=False)
    palette = Column(String(50), nullable=False, default="vibrant")
    base_color = Column(String(7), nullable=False, default="#6b76ff")
    canvas_bg = Column(String(7), nullable=False, default="#0b0f20")
    text_color = Column(String(7), nullable=False, default="#f1f3ff")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    dataset = relationship("CsvDataset", back_populates="chart_configs")

    # 可通过更新接口修改的字段
    UPDATABLE_FIELDS = (
        "chart_type", "label_column", "datasets", "dataset_colors",
        "palette", "base_color", "canvas_bg", "text_color",
    )

    def to_dict(self):
        return {
            "id": self.id,
            "datasetId": self.dataset_id,
            "chartType": self.chart_type,
            "labelColumn": self.label_column,
            "datasets": self.datasets,
            "datasetColors": self.dataset_colors,
            "palette": self.palette,
            "baseColor": self.base_color,
            "canvasBg": self.canvas_bg,
            "textColor": self.text_color,
            "createdAt": _isoformat(self.created_at),
            "updatedAt": _isoformat(self.updated_at),
        }
