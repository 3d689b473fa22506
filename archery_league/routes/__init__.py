"""
archery_league/routes/__init__.py
Route registration
"""
from fastapi import APIRouter
from archery_league.routes import match_results

router = APIRouter()

router.include_router(match_results.router)
