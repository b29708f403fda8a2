from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, Field


class BetType(str, Enum):
    WIN = "WIN"
    PLACE = "PLACE"
    BRACKET_QUINELLA = "BRACKET_QUINELLA"
    QUINELLA = "QUINELLA"
    QUINELLA_PLACE = "QUINELLA_PLACE"
    EXACTA = "EXACTA"
    TRIO = "TRIO"
    TRIFECTA = "TRIFECTA"

class BuyType(str, Enum):
    NORMAL = "NORMAL"
    BOX = "BOX"
    FORMATION = "FORMATION"

class TicketStatus(str, Enum):
    PENDING = "PENDING"
    HIT = "HIT"
    LOSE = "LOSE"

class SettlementStatus(str, Enum):
    HIT = "HIT"
    LOSE = "LOSE"
    NOT_SETTLEABLE = "NOT_SETTLEABLE"

class BetValidationError(str, Enum):
    INVALID_STAKE_UNIT = "INVALID_STAKE_UNIT"
    UNKNOWN_OR_WITHDRAWN_ENTRY = "UNKNOWN_OR_WITHDRAWN_ENTRY"
    DUPLICATE_ENTRY = "DUPLICATE_ENTRY"
    WRONG_SELECTION_COUNT = "WRONG_SELECTION_COUNT"
    TOO_MANY_SELECTIONS = "TOO_MANY_SELECTIONS"
    EMPTY_COMBINATION_SET = "EMPTY_COMBINATION_SET"

# ユーザーにそのまま表示するメッセージ
VALIDATION_MESSAGES = {
    BetValidationError.INVALID_STAKE_UNIT: "購入金額は100pt単位、100pt以上10,000pt以下で指定してください。",
    BetValidationError.UNKNOWN_OR_WITHDRAWN_ENTRY: "存在しない、または出走取消の馬番が含まれています。",
    BetValidationError.DUPLICATE_ENTRY: "同じ馬番を複数選択することはできません。",
    BetValidationError.WRONG_SELECTION_COUNT: "選択数が馬券の種類・購入方法と一致しません。",
    BetValidationError.TOO_MANY_SELECTIONS: "ボックス購入の選択数が上限を超えています。",
    BetValidationError.EMPTY_COMBINATION_SET: "有効な組み合わせがありません。",
}

# --- Race data ---

class RosterEntry(BaseModel):
    horse_number: int
    frame_number: int
    withdrawn: bool = False

class PayoutItem(BaseModel):
    horse: List[int]
    money: Union[int, Decimal]

class PayoutData(BaseModel):
    WIN: Optional[List[PayoutItem]] = Field(None, alias="TAN")
    PLACE: Optional[List[PayoutItem]] = Field(None, alias="FUKU")
    BRACKET_QUINELLA: Optional[List[PayoutItem]] = Field(None, alias="WAKUREN")
    QUINELLA: Optional[List[PayoutItem]] = Field(None, alias="UMAREN")
    QUINELLA_PLACE: Optional[List[PayoutItem]] = Field(None, alias="WIDE")
    EXACTA: Optional[List[PayoutItem]] = Field(None, alias="UMATAN")
    TRIO: Optional[List[PayoutItem]] = Field(None, alias="SANRENPUKU")
    TRIFECTA: Optional[List[PayoutItem]] = None

    class Config:
        populate_by_name = True

# --- Tickets ---

class BetContent(BaseModel):
    type: BetType
    method: BuyType
    # NORMAL/BOX は [[...]] の1グループ、FORMATION は着順ごと or [軸, 相手]
    selections: List[List[int]]

class Ticket(BaseModel):
    id: Optional[str] = None
    user_id: Optional[str] = None
    race_id: Optional[str] = None
    bet_type: BetType
    buy_type: BuyType
    content: BetContent
    combinations: List[List[int]]
    amount_per_point: int
    total_points: int
    total_cost: int
    status: TicketStatus = TicketStatus.PENDING
    payout: Optional[int] = None

class SettlementOutcome(BaseModel):
    status: SettlementStatus
    payout: Optional[int] = None

    @property
    def settleable(self) -> bool:
        return self.status != SettlementStatus.NOT_SETTLEABLE

# --- API models ---

class PlaceBetRequest(BaseModel):
    bet_type: str
    buy_type: str
    selections: List[Union[int, str, List[Union[int, str]]]]
    unit_stake: int
    roster: List[RosterEntry]
    user_id: Optional[str] = None
    race_id: Optional[str] = None

class SettlementRequest(BaseModel):
    ticket: Ticket
    payout_data: Optional[PayoutData] = None

class SettlementResponse(BaseModel):
    status: SettlementStatus
    payout: Optional[int] = None
    ticket: Ticket

class BetTypeStats(BaseModel):
    count: int = 0
    hits: int = 0
    amount: int = 0
    payout: int = 0
    hit_rate: float = 0.0
    return_rate: float = 0.0

class TicketStats(BaseModel):
    total_tickets: int
    settled_tickets: int
    pending_tickets: int
    hits: int
    total_cost: int
    total_payout: int
    hit_rate: float
    return_rate: float
    by_bet_type: Dict[BetType, BetTypeStats] = {}

class StatsRequest(BaseModel):
    tickets: List[Ticket]
