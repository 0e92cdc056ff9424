from fastapi import APIRouter, Depends

from workpulse.api.deps import RequestContext, require_authenticated
from workpulse.models.staff import StaffPublic
from workpulse.services.container import directory_service


router = APIRouter(prefix="/auth", tags=["Auth"])


@router.get("/me", response_model=StaffPublic)
def read_me(ctx: RequestContext = Depends(require_authenticated)) -> StaffPublic:
    return directory_service.as_public(ctx.actor, ctx.snapshot)
