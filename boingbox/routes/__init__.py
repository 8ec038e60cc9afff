from fastapi import APIRouter
from .users import router as users_router
from .groups import router as groups_router
from .messages import router as messages_router
from .calls import router as calls_router
from .media import router as media_router
from .stories import router as stories_router
from .ws import router as ws_router

router = APIRouter()
router.include_router(users_router, prefix='/users', tags=['users'])
router.include_router(groups_router, prefix='/groups', tags=['groups'])
router.include_router(messages_router, prefix='/messages', tags=['messages'])
router.include_router(calls_router, prefix='/calls', tags=['calls'])
router.include_router(media_router, prefix='/media', tags=['media'])
router.include_router(stories_router, prefix='/stories', tags=['stories'])
router.include_router(ws_router, prefix='/ws', tags=['ws'])
