from fastapi import Header

from support_bot.core.errors import Unauthorized


async def get_current_owner(x_user_id: str = Header(default="")) -> str:
    owner_id = x_user_id.strip()
    if not owner_id:
        raise Unauthorized()
    return owner_id


async def get_optional_owner(x_user_id: str = Header(default="")) -> str | None:
    return x_user_id.strip() or None
