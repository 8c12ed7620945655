from abc import ABC, abstractmethod
from typing import Dict, Any, Optional

from ..utils.llm_utils import LLMClient


class BaseAgent(ABC):
    """所有智能体的基类，定义共通接口和功能"""

    def __init__(self, name: str, llm_client: LLMClient):
        self.name = name
        self.llm_client = llm_client

    @abstractmethod
    async def process(self, input_data: Dict[str, Any], context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        处理输入数据并返回结果

        Args:
            input_data: 输入数据
            context: 可选的上下文信息

        Returns:
            处理结果
        """
        pass

    async def validate_input(self, input_data: Dict[str, Any]) -> bool:
        """
        验证输入数据是否有效：必须包含非空的CSV文本和表头列表
        """
        csv_content = input_data.get("csv_content")
        headers = input_data.get("headers")
        if not isinstance(csv_content, str) or not csv_content.strip():
            return False
        if not isinstance(headers, list):
            return False
        return True

    def __str__(self) -> str:
        return f"{self.name} Agent"
