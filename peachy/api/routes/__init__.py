from fastapi import APIRouter
from . import points, activities, tasks, rewards, trees

router = APIRouter()

router.include_router(points.router, prefix="/points", tags=["Points"])
router.include_router(activities.router, prefix="/activities", tags=["Activities"])
router.include_router(tasks.router, prefix="/tasks", tags=["Tasks"])
router.include_router(rewards.router, prefix="/rewards", tags=["Rewards"])
router.include_router(trees.router, prefix="/trees", tags=["Trees"])
