import pandas as pd
import numpy as np
from typing import List

from .statistics import calculate_statistics
from ..models.analysis import ColumnDescriptor, DataStructure

# 数值列判定阈值：数值占比必须严格大于70%
NUMERIC_THRESHOLD = 0.7

# 单元格开头最长的浮点数前缀，"100kg" 取 100，"2024-01-05" 取 2024
NUMERIC_PREFIX = r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)"


class DataProcessor:
    """负责列类型推断和数据结构摘要"""

    @staticmethod
    def present_values(rows: List[List[str]], column_index: int) -> List[str]:
        """取某列所有非空、非纯空白的单元格"""
        values = []
        for row in rows:
            if column_index < len(row):
                value = row[column_index]
                if value and value.strip():
                    values.append(value)
        return values

    @staticmethod
    def numeric_values(values: List[str]) -> List[float]:
        """按开头的数字前缀解析浮点数，丢弃没有数字前缀和非有限的值"""
        if not values:
            return []
        prefixes = pd.Series(values, dtype="object").str.extract(NUMERIC_PREFIX, expand=False)
        parsed = pd.to_numeric(prefixes, errors="coerce").astype(float)
        parsed = parsed[np.isfinite(parsed)]
        return parsed.tolist()

    @staticmethod
    def classify_column(name: str, column_index: int, rows: List[List[str]]) -> ColumnDescriptor:
        """
        推断单列的类型并计算缺失值信息

        Args:
            name: 列名
            column_index: 列下标
            rows: 数据行

        Returns:
            ColumnDescriptor
        """
        total_rows = len(rows)
        values = DataProcessor.present_values(rows, column_index)
        numbers = DataProcessor.numeric_values(values)

        is_numeric = len(numbers) > NUMERIC_THRESHOLD * len(values)
        missing_count = total_rows - len(values)
        missing_percent = (missing_count / total_rows * 100) if total_rows > 0 else 0.0

        descriptor = ColumnDescriptor(
            name=name,
            type="numeric" if is_numeric else "categorical",
            unique_count=len(set(values)),
            missing_count=missing_count,
            missing_percent=f"{missing_percent:.2f}",
        )

        if is_numeric and numbers:
            descriptor.statistics = calculate_statistics(numbers)

        return descriptor

    @staticmethod
    def analyze_structure(headers: List[str], rows: List[List[str]]) -> DataStructure:
        """汇总每一列的描述，生成数据结构摘要"""
        columns = [
            DataProcessor.classify_column(header, index, rows)
            for index, header in enumerate(headers)
        ]
        return DataStructure(
            total_rows=len(rows),
            total_columns=len(headers),
            columns=columns,
        )
