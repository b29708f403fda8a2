from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from baken.constants import wager_rule
from baken.schemas import BetType, BetValidationError, BuyType, RosterEntry, Ticket
from baken.services.combination_builder import CombinationBuilder


@dataclass(frozen=True)
class SelectionDraft:
    """複数ステップで選択される買い目を、揃うまで保持する。

    プロセス全体で共有するセッションの代わりに、呼び出し側がこのオブジェクトを
    持ち回る。各ステップは新しい SelectionDraft を返す（元のオブジェクトは不変）。

    - NORMAL / BOX: 1ステップ（選択馬のフラット配列）
    - FORMATION: 着順ありは着順ごと、着順なしは 軸 → 相手 の2ステップ
    """

    bet_type: BetType
    buy_type: BuyType
    steps: Tuple[Tuple[int, ...], ...] = ()
    race_id: Optional[str] = None

    @classmethod
    def start(
        cls,
        bet_type: Union[str, BetType],
        buy_type: Union[str, BuyType],
        race_id: Optional[str] = None,
    ) -> SelectionDraft:
        return cls(bet_type=BetType(bet_type), buy_type=BuyType(buy_type), race_id=race_id)

    @property
    def expected_steps(self) -> int:
        if self.buy_type != BuyType.FORMATION:
            return 1
        rule = wager_rule(self.bet_type)
        if rule.required_picks == 1:
            return 1
        return rule.required_picks if rule.ordered else 2

    @property
    def is_complete(self) -> bool:
        return len(self.steps) == self.expected_steps

    def add_step(self, entries: Iterable[int]) -> SelectionDraft:
        if self.is_complete:
            raise ValueError("selection is already complete")
        return replace(self, steps=self.steps + (tuple(entries),))

    def back(self) -> SelectionDraft:
        """直前のステップを取り消す"""
        if not self.steps:
            raise ValueError("no step to undo")
        return replace(self, steps=self.steps[:-1])

    def to_raw_input(self) -> List:
        if not self.is_complete:
            raise ValueError(
                f"selection incomplete: {len(self.steps)}/{self.expected_steps} steps"
            )
        if self.buy_type == BuyType.FORMATION:
            return [list(step) for step in self.steps]
        return list(self.steps[0])

    def build(
        self,
        roster: Sequence[RosterEntry],
        unit_stake: int,
        user_id: Optional[str] = None,
    ) -> Union[Ticket, BetValidationError]:
        return CombinationBuilder.build(
            self.bet_type,
            self.buy_type,
            self.to_raw_input(),
            roster,
            unit_stake,
            user_id=user_id,
            race_id=self.race_id,
        )
