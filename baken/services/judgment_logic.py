import logging
from decimal import Decimal
from typing import List, Optional, Sequence

from baken.config import get_settings
from baken.constants import wager_rule
from baken.schemas import (
    PayoutData,
    PayoutItem,
    SettlementOutcome,
    SettlementStatus,
    Ticket,
    TicketStatus,
)
from baken.services.combination_builder import CombinationBuilder, combination_key

logger = logging.getLogger(__name__)


class JudgmentLogic:
    @staticmethod
    def judge_ticket(ticket: Ticket, payout_data: Optional[PayoutData]) -> SettlementOutcome:
        """
        チケットの的中判定を行い、SettlementOutcome を返す
        status: HIT / LOSE / NOT_SETTLEABLE
        payout: 払戻金合計（NOT_SETTLEABLE の場合は None）
        """
        JudgmentLogic._check_ticket(ticket)

        # 払戻データがない場合は判定不能（ハズレとは区別する）
        payout_items = JudgmentLogic._payout_items(ticket, payout_data)
        if not payout_items:
            return SettlementOutcome(status=SettlementStatus.NOT_SETTLEABLE, payout=None)

        total_payout = 0
        hit_count = 0

        # ユーザーの買い目1点ずつ、正解の組み合わせに含まれるかチェック
        for comb in ticket.combinations:
            item = JudgmentLogic._find_match(ticket, comb, payout_items)
            if item is None:
                continue
            # money は100円あたりの配当。端数は切り捨て
            total_payout += int(Decimal(item.money) * ticket.amount_per_point // 100)
            hit_count += 1

        if hit_count > 0 and total_payout > 0:
            return SettlementOutcome(status=SettlementStatus.HIT, payout=total_payout)
        return SettlementOutcome(status=SettlementStatus.LOSE, payout=0)

    @staticmethod
    def settle(ticket: Ticket, payout_data: Optional[PayoutData]) -> Ticket:
        """
        PENDING のチケットを一度だけ確定させる。
        判定不能の場合はチケットをそのまま返す（後で再実行される）。
        """
        if ticket.status != TicketStatus.PENDING:
            raise ValueError(f"ticket {ticket.id} is already settled ({ticket.status.value})")

        outcome = JudgmentLogic.judge_ticket(ticket, payout_data)
        if not outcome.settleable:
            return ticket

        status = TicketStatus.HIT if outcome.status == SettlementStatus.HIT else TicketStatus.LOSE
        return ticket.model_copy(update={"status": status, "payout": outcome.payout})

    @staticmethod
    def settle_race(tickets: Sequence[Ticket], payout_data: Optional[PayoutData]) -> List[Ticket]:
        """1レース分のチケットをまとめて確定する。確定済みのチケットはそのまま返す"""
        settled = []
        hits = loses = pending = 0
        for ticket in tickets:
            if ticket.status != TicketStatus.PENDING:
                settled.append(ticket)
                continue

            result = JudgmentLogic.settle(ticket, payout_data)
            if result.status == TicketStatus.HIT:
                hits += 1
            elif result.status == TicketStatus.LOSE:
                loses += 1
            else:
                pending += 1
            settled.append(result)

        logger.info(
            "Settled race tickets total=%d hit=%d lose=%d still_pending=%d",
            len(tickets), hits, loses, pending,
        )
        return settled

    @staticmethod
    def _payout_items(ticket: Ticket, payout_data: Optional[PayoutData]) -> List[PayoutItem]:
        if not payout_data:
            return []
        # 式別に対応する払戻リストを取得
        return getattr(payout_data, ticket.bet_type.value, None) or []

    @staticmethod
    def _find_match(ticket: Ticket, comb: List[int], payout_items: List[PayoutItem]) -> Optional[PayoutItem]:
        """
        買い目と一致する払戻を返す（最初に一致したもの）
        着順ありの式別は順序完全一致、それ以外は集合として一致
        """
        target = combination_key(ticket.bet_type, comb)
        for item in payout_items:
            if combination_key(ticket.bet_type, item.horse) == target:
                return item
        return None

    @staticmethod
    def _check_ticket(ticket: Ticket) -> None:
        """組み合わせ生成を経ていないチケットは呼び出し側のバグとして扱う"""
        if not CombinationBuilder._is_valid_stake(ticket.amount_per_point, get_settings()):
            raise ValueError(f"invalid amount_per_point {ticket.amount_per_point!r}")
        r = wager_rule(ticket.bet_type).required_picks
        if not ticket.combinations:
            raise ValueError("ticket has no combinations")

        seen = set()
        for comb in ticket.combinations:
            if len(comb) != r:
                raise ValueError(f"combination {comb} must have {r} entries for {ticket.bet_type.value}")
            if len(set(comb)) != len(comb):
                raise ValueError(f"combination {comb} repeats an entry")
            key = combination_key(ticket.bet_type, comb)
            if key in seen:
                raise ValueError(f"duplicate combination {comb}")
            seen.add(key)

        if ticket.total_points != len(ticket.combinations):
            raise ValueError("total_points does not match combinations")
        if ticket.total_cost != ticket.amount_per_point * ticket.total_points:
            raise ValueError("total_cost must equal amount_per_point * total_points")
