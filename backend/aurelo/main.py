# This file bootstraps the FastAPI app, wires up the logging and request
# context middlewares, sets up CORS, and includes all the routers.

import os

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from aurelo.core.config import settings
from aurelo.core.db import Base, engine
from aurelo.core.logging import APILoggingMiddleware
from aurelo.entitlements.enforcement import PlanEnforcementError
from aurelo.workspaces.middleware import RequestContextMiddleware

# Importing the models registers their tables on Base.metadata.
import aurelo.models  # noqa: F401

from aurelo.api.billing import router as billing_router
from aurelo.api.clients import router as clients_router
from aurelo.api.entitlements import router as entitlements_router
from aurelo.api.health import router as health_router
from aurelo.api.invoices import router as invoices_router
from aurelo.api.plans import router as plans_router
from aurelo.api.workspaces import router as workspaces_router

API_V1_PREFIX = "/api/v1"

# Create DB tables right away unless Alembic owns the schema.
if os.getenv("SKIP_MIGRATIONS") != "1":
    Base.metadata.create_all(bind=engine)

app = FastAPI(title="Aurelo")


# One handler covers every subclass: limit, feature, trial and binding errors.
@app.exception_handler(PlanEnforcementError)
def handle_plan_enforcement(_request, exc: PlanEnforcementError):
    response = JSONResponse(status_code=exc.status_code, content=exc.to_payload())
    response.headers["X-Error-Code"] = exc.code
    return response


app.add_middleware(APILoggingMiddleware)

api_v1 = APIRouter(prefix=API_V1_PREFIX)

routers = [
    plans_router,
    entitlements_router,
    workspaces_router,
    clients_router,
    invoices_router,
    billing_router,
]

for r in routers:
    api_v1.include_router(r)

app.include_router(api_v1)
app.include_router(health_router)

# Attach request context (request_id, workspace selection) early.
app.add_middleware(RequestContextMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[
        "X-Request-Id",
        "X-Error-Code",
        "X-History-Limit-Days",
        "X-History-Clamped",
        "X-History-Notice",
    ],
    max_age=86400,
)
