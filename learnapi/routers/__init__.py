"""
FastAPI routers grouped by resource (users, sections, exercises).

Each module exposes an APIRouter included by learnapi.app.create_app. Routers
translate JSON payloads into service calls; ServiceError subclasses are
rendered by the application's exception handler.
"""
