"""Map failed application Results onto HTTP errors."""
from __future__ import annotations

from fastapi import HTTPException, status

from curriculum_api.domain.common.result import ErrorCode, Result

_STATUS_BY_CODE = {
    ErrorCode.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorCode.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.UNPROCESSABLE: status.HTTP_422_UNPROCESSABLE_ENTITY,
}


def status_for(result: Result) -> int:
    return _STATUS_BY_CODE.get(result.code, status.HTTP_400_BAD_REQUEST)


def unwrap(result: Result):
    """Return the value of a successful Result, otherwise raise the matching HTTPException."""
    if not result.is_success:
        raise HTTPException(status_code=status_for(result), detail=result.error)
    return result.value
