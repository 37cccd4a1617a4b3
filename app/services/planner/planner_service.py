from starlette.concurrency import run_in_threadpool
from app.core.llm_client import get_ai_completion
from app.core.logger import logger
from app.models.user.user import User
from app.schemas.planner.planner import PlannerChatResponse, TripDraftResponse
from app.utils.ai_planner import CHAT_SYSTEM_PROMPT, build_trip_json_prompt, parse_trip_json


async def plan_trip_chat(prompt: str, user: User) -> PlannerChatResponse:
    messages = [
        {"role": "system", "content": CHAT_SYSTEM_PROMPT},
        {"role": "user", "content": prompt},
    ]
    reply = await run_in_threadpool(get_ai_completion, messages)
    logger.info(f"AI planner chat answered for user {user.id}")
    return PlannerChatResponse(reply=reply)


async def generate_trip_draft(conversation: str, user: User) -> TripDraftResponse:
    messages = [
        {"role": "system", "content": build_trip_json_prompt(conversation)},
        {"role": "user", "content": conversation},
    ]
    raw = await run_in_threadpool(get_ai_completion, messages, 0.2)
    trip = parse_trip_json(raw)
    if trip is None:
        logger.warning(f"AI planner returned unparseable trip JSON for user {user.id}")
        return TripDraftResponse(trip=None, raw=raw)
    logger.info(f"AI planner trip draft generated for user {user.id}")
    return TripDraftResponse(trip=trip, raw=None)
