"""共通依存関数: 管理者セッション制御"""
from typing import Optional
from fastapi import Request, HTTPException, Depends

from storefront.core.redis import get_redis
from storefront.core.session import get_session


async def get_current_session(
    request: Request,
    r=Depends(get_redis),
) -> Optional[dict]:
    """Cookie → Redis でセッション取得。未ログインならNone"""
    session_id = request.cookies.get("session_id")
    if not session_id:
        return None
    return await get_session(r, session_id)


async def require_admin(
    session: Optional[dict] = Depends(get_current_session),
) -> dict:
    """管理者権限必須。未ログインなら401、adminでなければ403"""
    if session is None:
        raise HTTPException(status_code=401, detail="ログインが必要です")
    if session.get("role") != "admin":
        raise HTTPException(status_code=403, detail="管理者権限が必要です")
    return session
