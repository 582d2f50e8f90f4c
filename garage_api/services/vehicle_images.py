"""
AI vehicle image workflow.

validate -> resolve accessible vehicle -> call provider -> save URL ->
audit. Each step must succeed before the next one runs, so a rejected or
failed request leaves the vehicle and the audit log untouched.
"""
import math
import re
from typing import Optional

import structlog
from openai import RateLimitError
from sqlalchemy.ext.asyncio import AsyncSession

from garage_api.auth import Principal
from garage_api.errors import RateLimitProblem, ValidationProblem, vehicle_not_found
from garage_api.schemas.vehicle import VehicleImageRequest, VehicleImageResult
from garage_api.services.audit import create_audit_log
from garage_api.services.image_generator import VehicleImageGenerator
from garage_api.services.vehicle_access import get_accessible_vehicle

logger = structlog.get_logger(__name__)

INSTANCE = "/api/v1/vehicles/generate-image"
IMAGE_GENERATED_ACTION = "vehicle_image_generated"
FALLBACK_COLOR = "silver"
RATE_LIMIT_MARKERS = ("quota", "rate limit")
# Optional sign, optional integer part, digits after an optional point
NUMERIC_PATTERN = re.compile(r"[+-]?([0-9]*\.)?[0-9]+")


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _is_numeric(value) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    if isinstance(value, float):
        return math.isfinite(value)
    return NUMERIC_PATTERN.fullmatch(str(value)) is not None


def validate_image_request(request: VehicleImageRequest) -> None:
    """Raise a ValidationProblem naming the first invalid field."""
    if _is_blank(request.vehicle_id):
        raise ValidationProblem("Vehicle ID is required", instance=INSTANCE)
    if _is_blank(request.make):
        raise ValidationProblem("Make is required", instance=INSTANCE)
    if _is_blank(request.model):
        raise ValidationProblem("Model is required", instance=INSTANCE)
    if _is_blank(request.year) or not _is_numeric(request.year):
        raise ValidationProblem("Year must be a number", instance=INSTANCE)


def is_rate_limit_error(exc: Exception) -> bool:
    """Quota and rate-limit failures are matched on the message, case-sensitively."""
    if isinstance(exc, RateLimitError):
        return True
    message = str(exc)
    return any(marker in message for marker in RATE_LIMIT_MARKERS)


def _parse_vehicle_id(raw) -> Optional[int]:
    try:
        return int(str(raw).strip())
    except ValueError:
        return None


async def generate_vehicle_image(
    db: AsyncSession,
    principal: Principal,
    request: VehicleImageRequest,
    generator: VehicleImageGenerator,
) -> VehicleImageResult:
    validate_image_request(request)

    vehicle_id = _parse_vehicle_id(request.vehicle_id)
    vehicle = None
    if vehicle_id is not None:
        vehicle = await get_accessible_vehicle(db, principal, vehicle_id)
    if vehicle is None:
        raise vehicle_not_found(INSTANCE)

    color = request.color or vehicle.color or FALLBACK_COLOR
    try:
        image_url = await generator.generate(
            make=request.make,
            model=request.model,
            year=request.year,
            color=color,
        )
    except Exception as exc:
        if is_rate_limit_error(exc):
            logger.warning("image_generation_rate_limited", vehicle_id=vehicle.id, error=str(exc))
            raise RateLimitProblem(
                "AI image generation quota exceeded. Please try again later.",
                instance=INSTANCE,
            ) from exc
        raise

    vehicle.image_url = image_url
    await db.commit()

    # The vehicle is already updated if this write fails
    await create_audit_log(
        db,
        action=IMAGE_GENERATED_ACTION,
        actor_id=principal.user_id,
        org_id=principal.org_id,
        target={
            "type": "vehicle",
            "id": vehicle.id,
            "make": request.make,
            "model": request.model,
            "year": request.year,
        },
        meta={"imageUrl": image_url, "provider": generator.provider_tag},
    )
    logger.info("vehicle_image_generated", vehicle_id=vehicle.id, actor_id=principal.user_id)
    return VehicleImageResult(vehicle_id=vehicle.id, image_url=image_url)
