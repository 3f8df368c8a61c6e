"""
Request-scoped dependencies shared by the routers.
"""

from fastapi import Header, HTTPException, status


def get_user_id_from_header(x_user_id: str | None = Header(None)) -> int:
    """
    FastAPI dependency resolving the caller from the X-User-ID header.

    The API Gateway validates the JWT and forwards the authenticated user's
    ID in this header; the medication service trusts it as an opaque owner id.

    Raises:
        HTTPException: 400 if the header is missing or not a positive integer.

    Returns:
        int: The owner id every regimen and dose log query is scoped to.
    """
    if x_user_id is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-User-ID header is missing. Access via API Gateway."
        )
    try:
        user_id = int(x_user_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid User ID format in X-User-ID header."
        )
    if user_id <= 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User ID in X-User-ID header must be positive."
        )
    return user_id
