from typing import Dict, Any, List, Optional, Tuple

# 清洗前统计时视为空值的标记
EMPTY_MARKERS = {"null", "na", "n/a"}


class DataValidator:
    """负责验证CSV输入并给出清洗前的快速统计"""

    @staticmethod
    def validate_csv_content(csv_content: Optional[str], headers: Optional[List[str]] = None) -> Tuple[bool, Dict[str, Any]]:
        """
        验证上传或分析请求中的CSV内容

        Args:
            csv_content: 原始CSV文本
            headers: 客户端给出的表头（可选）

        Returns:
            验证结果(True/False)和详细信息
        """
        validation_results = {
            "is_valid": True,
            "warnings": [],
            "errors": []
        }

        if csv_content is None or not csv_content.strip():
            validation_results["is_valid"] = False
            validation_results["errors"].append({
                "type": "empty_csv",
                "message": "CSV content is empty"
            })
            return False, validation_results

        if headers is not None and len(headers) == 0:
            validation_results["is_valid"] = False
            validation_results["errors"].append({
                "type": "empty_headers",
                "message": "Headers must not be empty"
            })

        lines = csv_content.strip().split("\n")
        if len(lines) < 2:
            validation_results["warnings"].append({
                "type": "no_rows",
                "message": "CSV content contains a header line but no data rows"
            })

        if headers is not None and len(set(headers)) != len(headers):
            validation_results["warnings"].append({
                "type": "duplicate_headers",
                "message": "CSV headers contain duplicate names"
            })

        return validation_results["is_valid"], validation_results

    @staticmethod
    def is_empty_cell(cell: Optional[str]) -> bool:
        if not cell or cell.strip() == "":
            return True
        return cell.lower() in EMPTY_MARKERS

    @staticmethod
    def quick_stats(headers: List[str], rows: List[List[str]]) -> Dict[str, Any]:
        """
        清洗前的快速统计：空单元格数量和完全重复的行数

        重复行按 "|" 拼接后的字符串精确比较。
        """
        empty_values = sum(
            1 for row in rows for cell in row if DataValidator.is_empty_cell(cell)
        )
        unique_rows = {"|".join(row) for row in rows}

        return {
            "totalRows": len(rows),
            "totalColumns": len(headers),
            "emptyValues": empty_values,
            "inconsistentFormats": [],
            "duplicateRows": len(rows) - len(unique_rows),
        }
