class LLMResponseError(Exception):
    """LLM调用失败或返回内容无法通过校验"""


class CleaningError(Exception):
    """数据清洗失败，category 为 timeout / rate_limit / network / generic 之一"""

    def __init__(self, category: str, message: str):
        super().__init__(message)
        self.category = category
        self.message = message


class PersistenceUnavailableError(Exception):
    """数据库不可用时的写操作失败"""
