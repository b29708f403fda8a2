from fastapi import APIRouter, HTTPException, status
from baken.schemas import SettlementRequest, SettlementResponse, StatsRequest, TicketStats
from baken.services.judgment_logic import JudgmentLogic
from baken.services.stats import summarize_tickets
import logging

router = APIRouter()

logger = logging.getLogger(__name__)

@router.post("/settlements", response_model=SettlementResponse)
def settle_ticket(req: SettlementRequest):
    ticket = req.ticket
    logger.info("Settlement request ticket_id=%s race_id=%s bet_type=%s", ticket.id, ticket.race_id, ticket.bet_type.value)

    try:
        outcome = JudgmentLogic.judge_ticket(ticket, req.payout_data)
        settled = JudgmentLogic.settle(ticket, req.payout_data)
    except ValueError as e:
        # 確定済み、または組み合わせ・金額が不正なチケット
        logger.warning("Settlement rejected ticket_id=%s: %s", ticket.id, e)
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except Exception as e:
        logger.exception("Settlement failed ticket_id=%s", ticket.id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))

    return SettlementResponse(status=outcome.status, payout=outcome.payout, ticket=settled)

@router.post("/stats", response_model=TicketStats)
def ticket_stats(req: StatsRequest):
    return summarize_tickets(req.tickets)
