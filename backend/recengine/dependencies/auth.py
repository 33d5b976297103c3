"""Authentication dependencies for FastAPI routes.

Login happens elsewhere; these only read the identity it leaves in the
signed session cookie.
"""

from uuid import UUID

from fastapi import Depends, HTTPException, Request


def get_current_user_id(request: Request) -> UUID | None:
    """Return the logged-in user's id or None for anonymous visitors."""
    user_id = request.session.get("user_id")
    if not user_id:
        return None
    try:
        return UUID(str(user_id))
    except ValueError:
        return None


def require_user_id(user_id: UUID | None = Depends(get_current_user_id)) -> UUID:
    """Return the logged-in user's id or raise 401."""
    if not user_id:
        raise HTTPException(status_code=401, detail="Login required")
    return user_id
