"""
Slot generator: apply, dry-run and plan. Admin secret required on every route.
"""
import logging
from typing import Any

from fastapi import APIRouter, Body, Depends
from fastapi.exceptions import RequestValidationError
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from bundlegen.api.deps import get_catalog
from bundlegen.core.errors import GeneratorError, InvalidInput, error_to_http
from bundlegen.core.security import require_admin
from bundlegen.services.generator.orchestrator import apply
from bundlegen.services.generator.plan import PlanInput, build_plan
from bundlegen.services.generator.types import FeedInput, GenerateInput, ManualInput
from bundlegen.services.shopify.base import Catalog

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_admin)])

_generate_input = TypeAdapter(GenerateInput)


def _invalid(e: PydanticValidationError) -> RequestValidationError:
    return RequestValidationError(e.errors(include_url=False, include_context=False))


def parse_generate_input(body: dict[str, Any] = Body(...)) -> ManualInput | FeedInput:
    """Manual or feed input, picked by `source` (default manual). Bad body -> 422."""
    body = {"source": "manual", **body}
    try:
        return _generate_input.validate_python(body)
    except PydanticValidationError as e:
        raise _invalid(e) from e


async def _run(data: ManualInput | FeedInput, catalog: Catalog, dry_run: bool | None) -> dict:
    try:
        result = await apply(data, catalog=catalog, dry_run=dry_run)
    except GeneratorError as e:
        raise error_to_http(e) from e
    return result.model_dump(by_alias=True, exclude_none=True)


@router.post("/apply")
async def apply_route(
    data: ManualInput | FeedInput = Depends(parse_generate_input),
    catalog: Catalog = Depends(get_catalog),
):
    """Run the generator. `dryRun` in the body defaults to true; send false to write."""
    return await _run(data, catalog, None)


@router.post("/dry-run")
async def dry_run_route(
    data: ManualInput | FeedInput = Depends(parse_generate_input),
    catalog: Catalog = Depends(get_catalog),
):
    return await _run(data, catalog, True)


@router.post("/plan")
async def plan_route(body: dict[str, Any] = Body(...), catalog: Catalog = Depends(get_catalog)):
    """Titles, variants and prices per slot for a manual input. Only the holiday list is read."""
    if body.get("source", "manual") != "manual":
        raise error_to_http(InvalidInput("plan supports manual input only"))
    try:
        if "holidays" not in body:
            body = {**body, "holidays": sorted(await catalog.get_holiday_dates())}
        data = PlanInput.model_validate(body)
    except PydanticValidationError as e:
        raise _invalid(e) from e
    except GeneratorError as e:
        raise error_to_http(e) from e
    return build_plan(data).model_dump(by_alias=True, exclude_none=True)
