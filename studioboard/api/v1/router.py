# studioboard/api/v1/router.py
from fastapi import APIRouter
from studioboard.modules.auth.router import router as auth_router
from studioboard.modules.board.router import router as board_router
from studioboard.modules.projects.router import router as projects_router
from studioboard.modules.clients.router import router as clients_router
from studioboard.modules.users.router import router as users_router
from studioboard.modules.appointments.router import router as appointments_router
from studioboard.modules.calendar.router import router as calendar_router
from studioboard.modules.ai.router import router as ai_router

api_router = APIRouter()

api_router.include_router(auth_router,         prefix="/auth",         tags=["auth"])
api_router.include_router(board_router,        prefix="/board",        tags=["board"])
api_router.include_router(projects_router,     prefix="/projects",     tags=["projects"])
api_router.include_router(clients_router,      prefix="/clients",      tags=["clients"])
api_router.include_router(users_router,        prefix="/users",        tags=["users"])
api_router.include_router(appointments_router, prefix="/appointments", tags=["appointments"])
api_router.include_router(calendar_router,     prefix="/calendar",     tags=["calendar"])
api_router.include_router(ai_router,           prefix="/ai",           tags=["ai"])
