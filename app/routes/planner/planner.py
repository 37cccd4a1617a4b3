from fastapi import APIRouter, Depends
from app.dependencies.auth import get_current_user
from app.models.user.user import User
from app.schemas.planner.planner import (
    PlannerChatRequest,
    PlannerChatResponse,
    TripDraftRequest,
    TripDraftResponse,
)
from app.services.planner.planner_service import generate_trip_draft, plan_trip_chat

router = APIRouter(prefix="/ai-planner", tags=["AI Planner"])


@router.post("/chat", response_model=PlannerChatResponse)
async def chat_with_planner(
    payload: PlannerChatRequest,
    current_user: User = Depends(get_current_user),
):
    return await plan_trip_chat(payload.prompt, current_user)


@router.post("/trip-json", response_model=TripDraftResponse)
async def trip_json_from_conversation(
    payload: TripDraftRequest,
    current_user: User = Depends(get_current_user),
):
    return await generate_trip_draft(payload.conversation, current_user)
