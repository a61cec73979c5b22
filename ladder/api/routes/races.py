"""Race Routes — HTTP intake of already-parsed player intents.

Invariants:
    - One route per exposed operation; /join also reads the league for its reply
    - LadderErrors propagate to the global handlers (api/error_handlers.py),
      which decide between the literal message and the generic one

Design Decisions:
    - player_id in the body rather than the path: the chat front-end resolves its
      own identities and forwards intents as-is
"""

import logging

from fastapi import APIRouter, Depends

from ladder.schemas.races import (
    JoinByShortCodeRequest, JoinRequest, JoinResponse, LeagueResponse,
    MatchResponse, MatchSessionResponse, PlayerAction,
)
from ladder.services.ladder_service import LadderService, get_ladder_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/races", tags=["races"])

CANCEL_CONFIRMATION = (
    "You have cancelled your participation for the next race. "
    "This will not count as a loss and won't affect your rankings."
)


@router.post("/join", response_model=JoinResponse)
async def join_session(
    body: JoinRequest, service: LadderService = Depends(get_ladder_service),
):
    """Register for the next joinable race of a league."""
    session = await service.join_session(body.player_id, body.league_id)
    league = await service.league_for(session)
    return _join_response(service, session, league)


@router.post("/join-by-shortcode", response_model=JoinResponse)
async def join_session_by_short_code(
    body: JoinByShortCodeRequest,
    service: LadderService = Depends(get_ladder_service),
):
    """Register for the next joinable race of the league behind a short code."""
    session, league = await service.join_session_by_short_code(
        body.player_id, body.short_code,
    )
    return _join_response(service, session, league)


@router.post("/cancel")
async def cancel_session(
    body: PlayerAction, service: LadderService = Depends(get_ladder_service),
):
    """Leave the current session before its race starts."""
    session = await service.cancel_session(body.player_id)
    return {
        "session": MatchSessionResponse.model_validate(session).model_dump(mode="json"),
        "message": CANCEL_CONFIRMATION,
    }


@router.post("/complete", response_model=MatchResponse)
async def complete_active_match(
    body: PlayerAction, service: LadderService = Depends(get_ladder_service),
):
    """Report the end of the player's current race."""
    match = await service.complete_active_match(body.player_id)
    return MatchResponse.model_validate(match)


@router.post("/forfeit", response_model=MatchResponse)
async def forfeit_active_match(
    body: PlayerAction, service: LadderService = Depends(get_ladder_service),
):
    """Give up the player's current race, started or not."""
    match = await service.forfeit_active_match(body.player_id)
    return MatchResponse.model_validate(match)


def _join_response(service: LadderService, session, league) -> JoinResponse:
    return JoinResponse(
        session=MatchSessionResponse.model_validate(session),
        league=LeagueResponse.model_validate(league),
        cancel_deadline=service.cancel_deadline(session),
        message=service.join_confirmation(league.name, session),
    )
