from fastapi import FastAPI

from api.config import settings
from api.errors import register_exception_handlers
from api.routes import emergency_router, internal_router, reports_router, risk_router

app = FastAPI(title=settings.app_name, version=settings.version)
register_exception_handlers(app)

app.include_router(internal_router)
app.include_router(risk_router)
app.include_router(reports_router)
app.include_router(emergency_router)
