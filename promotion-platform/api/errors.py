"""
Mapping from promotion engine errors to HTTP errors.

- validation errors                      -> 400
- unknown promotion                      -> 404
- conflicting active promotion           -> 409
- illegal lifecycle transition           -> 409
- sweep already running                  -> 409
"""

from fastapi import HTTPException

from domain.errors import (
    ConflictingActivePromotion,
    InvalidTransition,
    PromotionError,
    PromotionNotFound,
    PromotionValidationError,
    SweepAlreadyRunning,
)


def to_http_exception(error: PromotionError) -> HTTPException:
    if isinstance(error, PromotionValidationError):
        return HTTPException(status_code=400, detail=str(error))
    if isinstance(error, PromotionNotFound):
        return HTTPException(status_code=404, detail=str(error))
    if isinstance(error, (ConflictingActivePromotion, InvalidTransition, SweepAlreadyRunning)):
        return HTTPException(status_code=409, detail=str(error))
    return HTTPException(status_code=500, detail=str(error))
