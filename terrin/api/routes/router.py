from fastapi import APIRouter

from terrin.api.routes.ai import router as ai_router
from terrin.api.routes.attachments import router as attachments_router
from terrin.api.routes.auth import router as auth_router
from terrin.api.routes.contractors import router as contractors_router
from terrin.api.routes.conversations import router as conversations_router
from terrin.api.routes.costs import router as costs_router
from terrin.api.routes.documents import router as documents_router
from terrin.api.routes.estimates import router as estimates_router
from terrin.api.routes.milestones import router as milestones_router
from terrin.api.routes.payments import router as payments_router
from terrin.api.routes.photos import router as photos_router
from terrin.api.routes.projects import router as projects_router
from terrin.api.routes.stripe_connect import router as stripe_router
from terrin.api.routes.ws import router as ws_router

api_router = APIRouter()

api_router.include_router(auth_router)
# Sub-resource routers first: /projects/milestones/{id} must not hit /projects/{project_id}
api_router.include_router(milestones_router)
api_router.include_router(costs_router)
api_router.include_router(documents_router)
api_router.include_router(photos_router)
api_router.include_router(payments_router)
api_router.include_router(projects_router)
api_router.include_router(estimates_router)
api_router.include_router(contractors_router, prefix="/contractors")
api_router.include_router(contractors_router, prefix="/professionals", include_in_schema=False)
api_router.include_router(attachments_router)
api_router.include_router(conversations_router)
api_router.include_router(ai_router)
api_router.include_router(stripe_router)
api_router.include_router(ws_router)
