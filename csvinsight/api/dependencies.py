from typing import Optional
from fastapi import Header, HTTPException


async def get_current_user_id(x_user_id: Optional[int] = Header(None)) -> int:
    """
    从 X-User-Id 请求头读取当前用户

    登录与OAuth由外部网关负责，这里只信任网关注入的用户ID。
    """
    if x_user_id is None:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    return x_user_id
