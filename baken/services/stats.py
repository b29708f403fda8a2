from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Sequence

from baken.schemas import BetType, BetTypeStats, Ticket, TicketStats, TicketStatus


def _percent(numerator: int, denominator: int) -> float:
    # 小数第1位で四捨五入したパーセント
    if denominator <= 0:
        return 0.0
    value = Decimal(numerator) * 100 / Decimal(denominator)
    return float(value.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def summarize_tickets(tickets: Sequence[Ticket]) -> TicketStats:
    """的中率・回収率を全体と式別で集計する。未確定のチケットは率の計算から除く"""
    settled = [t for t in tickets if t.status != TicketStatus.PENDING]
    hits = [t for t in settled if t.status == TicketStatus.HIT]
    total_cost = sum(t.total_cost for t in settled)
    total_payout = sum(t.payout or 0 for t in settled)

    by_bet_type: Dict[BetType, BetTypeStats] = {}
    for t in settled:
        group = by_bet_type.setdefault(t.bet_type, BetTypeStats())
        group.count += 1
        group.amount += t.total_cost
        group.payout += t.payout or 0
        if t.status == TicketStatus.HIT:
            group.hits += 1

    for group in by_bet_type.values():
        group.hit_rate = _percent(group.hits, group.count)
        group.return_rate = _percent(group.payout, group.amount)

    return TicketStats(
        total_tickets=len(tickets),
        settled_tickets=len(settled),
        pending_tickets=len(tickets) - len(settled),
        hits=len(hits),
        total_cost=total_cost,
        total_payout=total_payout,
        hit_rate=_percent(len(hits), len(settled)),
        return_rate=_percent(total_payout, total_cost),
        by_bet_type=by_bet_type,
    )
