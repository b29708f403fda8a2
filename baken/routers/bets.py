from fastapi import APIRouter, HTTPException, status
from baken.schemas import BetValidationError, PlaceBetRequest, Ticket, VALIDATION_MESSAGES
from baken.services.combination_builder import CombinationBuilder
from baken.services.parsers import parse_bet_type, parse_buy_type, parse_selections
import logging

router = APIRouter()

logger = logging.getLogger(__name__)

@router.post("/bets", response_model=Ticket, status_code=status.HTTP_201_CREATED)
def place_bet(req: PlaceBetRequest):
    try:
        bet_type = parse_bet_type(req.bet_type)
        buy_type = parse_buy_type(req.buy_type)
        selections = parse_selections(req.selections)
    except ValueError as e:
        logger.info("Unparseable bet request race_id=%s: %s", req.race_id, e)
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))

    try:
        result = CombinationBuilder.build(
            bet_type,
            buy_type,
            selections,
            req.roster,
            req.unit_stake,
            user_id=req.user_id,
            race_id=req.race_id,
        )
    except Exception as e:
        logger.exception("Place bet failed race_id=%s", req.race_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))

    if isinstance(result, BetValidationError):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"code": result.value, "message": VALIDATION_MESSAGES[result]},
        )
    return result
