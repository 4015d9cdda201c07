from dataclasses import dataclass

from fastapi import Depends, Header, Request

from shared.models.errors import AuthFailure, ForbiddenFailure


@dataclass
class CurrentUser:
    id: int
    is_admin: bool = False


async def verify_api_key(request: Request, x_api_key: str | None = Header(default=None)) -> None:
    """Verify the X-Api-Key header against the configured API key.

    Args:
        request (Request): The FastAPI request object (provides app.state).
        x_api_key (str | None): The value of the X-Api-Key header.

    Raises:
        AuthFailure: If the key is missing or does not match.
    """
    helper_config = request.app.state.helper_config
    expected_key = helper_config.get_string_val("APP_API_KEY")
    if not x_api_key or x_api_key != expected_key:
        raise AuthFailure("Invalid or missing API key.")


async def get_current_user(
    request: Request,
    x_user_id: str | None = Header(default=None),
    _: None = Depends(verify_api_key),
) -> CurrentUser:
    """Resolve the caller from the X-User-Id header set by the upstream gateway.

    Raises:
        AuthFailure: If the header is missing or not an integer.
    """
    try:
        user_id = int((x_user_id or "").strip())
    except ValueError:
        raise AuthFailure(f"Invalid X-User-Id header: {x_user_id!r}.")

    admin_ids = request.app.state.helper_config.get_list_val("APP_ADMIN_IDS", default=[], element_type=int)
    return CurrentUser(id=user_id, is_admin=user_id in admin_ids)


async def require_admin(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    """Raises ForbiddenFailure unless the caller is listed in APP_ADMIN_IDS."""
    if not user.is_admin:
        raise ForbiddenFailure(f"User {user.id} is not an admin.")
    return user
