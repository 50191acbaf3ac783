from fastapi import APIRouter

from hapa.api.v1.health import router as health_router
from hapa.api.v1.auth import router as auth_router

# PUBLIC FORMS
from hapa.api.v1.forms import router as forms_router
from hapa.api.v1.uploads import router as uploads_router
from hapa.api.v1.contact import router as contact_router
from hapa.api.v1.feedback import router as feedback_router

# BACK-OFFICE
from hapa.api.v1.admin_submissions import router as admin_submissions_router
from hapa.api.v1.admin_uploads import router as admin_uploads_router
from hapa.api.v1.admin_contact import router as admin_contact_router
from hapa.api.v1.admin_content import router as admin_content_router


v1_router = APIRouter()

# ------------------------------------------------------------------
# SYSTEM / CORE
# ------------------------------------------------------------------
v1_router.include_router(health_router, tags=["health"])
v1_router.include_router(auth_router, tags=["auth"])

# ------------------------------------------------------------------
# PUBLIC FORMS / UPLOADS
# ------------------------------------------------------------------
v1_router.include_router(forms_router, tags=["forms"])
v1_router.include_router(uploads_router, tags=["uploads"])
v1_router.include_router(contact_router, tags=["contact"])
v1_router.include_router(feedback_router, tags=["feedback"])

# ------------------------------------------------------------------
# ADMIN
# ------------------------------------------------------------------
v1_router.include_router(admin_submissions_router, tags=["admin-submissions"])
v1_router.include_router(admin_uploads_router, tags=["admin-uploads"])
v1_router.include_router(admin_contact_router, tags=["admin-contact"])
v1_router.include_router(admin_content_router, tags=["admin-content"])
