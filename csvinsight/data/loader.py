from dataclasses import dataclass, field
from typing import List


@dataclass
class ParsedCsv:
    """解析后的CSV表格 (Parsed CSV table)"""

    headers: List[str]
    rows: List[List[str]] = field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.rows)


class CsvLoader:
    """负责把原始CSV文本切分为表头和数据行 (Splits raw CSV text into headers and rows)"""

    # 上传文件的解码尝试顺序 (Decoding attempts for uploaded files)
    ENCODINGS = ["utf-8-sig", "utf-8", "latin1", "cp1252", "gbk"]

    @staticmethod
    def decode(content: bytes) -> str:
        """尝试不同的编码解码字节内容 (Try several encodings)"""
        for encoding in CsvLoader.ENCODINGS:
            try:
                return content.decode(encoding)
            except UnicodeDecodeError:
                continue
        raise ValueError("Failed to decode CSV content with all attempted encodings")

    @staticmethod
    def split_lines(text: str) -> List[str]:
        """去掉首尾空白后按换行切分 (Strip, then split on newlines)"""
        if text is None or not text.strip():
            raise ValueError("CSV content is empty")
        return text.strip().split("\n")

    @staticmethod
    def parse(text: str, quoted: bool = False) -> ParsedCsv:
        """
        解析CSV文本 (Parse CSV text)

        第一行为表头，其余行为数据行。每个单元格去除首尾空白。
        The first line is the header row; every cell is trimmed. Rows with
        fewer or more cells than the header are kept as they are.

        Args:
            text: 原始CSV文本 (raw CSV text)
            quoted: 是否识别双引号内的逗号 (respect quoted fields)

        Returns:
            ParsedCsv
        """
        lines = CsvLoader.split_lines(text)
        split = CsvLoader.split_quoted_line if quoted else CsvLoader.split_line
        headers = split(lines[0])
        rows = [split(line) for line in lines[1:]]
        return ParsedCsv(headers=headers, rows=rows)

    @staticmethod
    def split_line(line: str) -> List[str]:
        return [cell.strip() for cell in line.split(",")]

    @staticmethod
    def split_quoted_line(line: str) -> List[str]:
        """逗号在双引号内不切分；引号内的 "" 表示一个字面引号"""
        cells = []
        current = []
        in_quotes = False
        i = 0
        while i < len(line):
            char = line[i]
            if char == '"':
                if in_quotes and i + 1 < len(line) and line[i + 1] == '"':
                    current.append('"')
                    i += 1
                else:
                    in_quotes = not in_quotes
            elif char == "," and not in_quotes:
                cells.append("".join(current).strip())
                current = []
            else:
                current.append(char)
            i += 1
        cells.append("".join(current).strip())
        return cells

    @staticmethod
    def to_csv(headers: List[str], rows: List[List[str]]) -> str:
        """
        把表格写回CSV文本 (Write a table back to CSV text)

        每行一条记录；含逗号或引号的单元格加引号，单元格内的换行替换为空格。
        """
        lines = [CsvLoader._join_row(headers)]
        lines.extend(CsvLoader._join_row(row) for row in rows)
        return "\n".join(lines)

    @staticmethod
    def _join_row(cells: List[str]) -> str:
        return ",".join(CsvLoader._format_cell(cell) for cell in cells)

    @staticmethod
    def _format_cell(cell) -> str:
        value = "" if cell is None else str(cell)
        value = " ".join(value.splitlines())
        if "," in value or '"' in value:
            value = '"' + value.replace('"', '""') + '"'
        return value
