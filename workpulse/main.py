from fastapi import FastAPI

from workpulse.api.routers.auth import router as auth_router
from workpulse.api.routers.authz import router as authz_router
from workpulse.api.routers.roles import router as roles_router
from workpulse.api.routers.staff import router as staff_router
from workpulse.core.logging import configure_logging

configure_logging()

app = FastAPI(
    title="WorkPulse Authorization Service",
    version="1.0.0",
    description=(
        "Hierarchical role-based access control for the WorkPulse workforce backend: "
        "tri-state grants evaluated against the reporting hierarchy."
    ),
)


@app.get("/")
def health() -> dict[str, str]:
    return {"status": "ok", "service": "WorkPulse Authorization Service"}


app.include_router(auth_router)
app.include_router(authz_router)
app.include_router(staff_router)
app.include_router(roles_router)
