from typing import Optional

from fastapi import Header, HTTPException, status


async def get_operator_id(x_operator_id: Optional[str] = Header(default=None)) -> int:
    """Operator identity forwarded by the auth gateway.

    The gateway has already authenticated the caller; only presence and shape
    are checked here.
    """
    if x_operator_id is None or not x_operator_id.strip().isdigit():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Operator identity required")
    return int(x_operator_id)
