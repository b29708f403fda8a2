import itertools
import logging
from typing import Any, List, Optional, Sequence, Set, Tuple, Union

from baken.config import EngineSettings, get_settings
from baken.constants import WagerRule, wager_rule
from baken.schemas import (
    BetContent,
    BetType,
    BetValidationError,
    BuyType,
    RosterEntry,
    Ticket,
)

logger = logging.getLogger(__name__)


class CombinationBuilder:
    @staticmethod
    def build(
        bet_type: Union[str, BetType],
        buy_type: Union[str, BuyType],
        raw_input: Sequence[Any],
        roster: Sequence[RosterEntry],
        unit_stake: int,
        *,
        settings: Optional[EngineSettings] = None,
        user_id: Optional[str] = None,
        race_id: Optional[str] = None,
    ) -> Union[Ticket, BetValidationError]:
        """
        ユーザーの選択を検証し、1点ごとの組み合わせに展開した Ticket を返す。
        検証に失敗した場合は BetValidationError を返す（例外は投げない）。

        raw_input の形:
        - NORMAL / BOX: 馬番のフラット配列 [1, 2, 3]
          （着順ありの NORMAL は [[1], [2]] のように着順ごとの1頭グループでも可）
        - FORMATION: 着順ありなら着順ごとのグループ [[1着候補], [2着候補], ...]、
          着順なしなら [[軸], [相手]]

        検証は 金額 → 出走馬 → 重複 → 選択数 の順に行い、最初の失敗を返す。
        """
        settings = settings or get_settings()
        bet_type = BetType(bet_type)
        buy_type = BuyType(buy_type)
        rule = wager_rule(bet_type)
        raw_input = list(raw_input)

        def reject(error: BetValidationError) -> BetValidationError:
            logger.info(
                "Rejected bet bet_type=%s buy_type=%s race_id=%s reason=%s",
                bet_type.value, buy_type.value, race_id, error.value,
            )
            return error

        # 1. 金額
        if not CombinationBuilder._is_valid_stake(unit_stake, settings):
            return reject(BetValidationError.INVALID_STAKE_UNIT)

        # 2. 出走馬（取消馬・存在しない馬番）
        valid_ids = CombinationBuilder.valid_entries(roster, rule)
        for entry in CombinationBuilder._flatten(raw_input):
            if not CombinationBuilder._is_entry_id(entry) or entry not in valid_ids:
                return reject(BetValidationError.UNKNOWN_OR_WITHDRAWN_ENTRY)

        # 3. 重複
        if CombinationBuilder._has_duplicates(buy_type, raw_input):
            return reject(BetValidationError.DUPLICATE_ENTRY)

        # 4. 選択数
        groups, error = CombinationBuilder._shape_groups(rule, buy_type, raw_input, settings)
        if error is not None:
            return reject(error)

        combinations = CombinationBuilder._dedupe(rule, CombinationBuilder._generate(rule, buy_type, groups))
        if not combinations:
            return reject(BetValidationError.EMPTY_COMBINATION_SET)

        # NORMAL は [[1], [2]] 形式で保存し、そのまま再構築できるようにする
        if buy_type == BuyType.NORMAL:
            selections = [[entry] for entry in groups[0]]
        else:
            selections = groups

        # 1点あたりの金額 × 点数（合計金額を点数で割ることはしない）
        total_points = len(combinations)
        ticket = Ticket(
            user_id=user_id,
            race_id=race_id,
            bet_type=bet_type,
            buy_type=buy_type,
            content=BetContent(type=bet_type, method=buy_type, selections=selections),
            combinations=combinations,
            amount_per_point=unit_stake,
            total_points=total_points,
            total_cost=unit_stake * total_points,
        )
        logger.info(
            "Built ticket bet_type=%s buy_type=%s race_id=%s points=%d total_cost=%d",
            bet_type.value, buy_type.value, race_id, total_points, ticket.total_cost,
        )
        return ticket

    @staticmethod
    def valid_entries(roster: Sequence[RosterEntry], rule: WagerRule) -> Set[int]:
        """購入可能な馬番（枠連の場合は枠番）の集合"""
        active = [r for r in roster if not r.withdrawn]
        if rule.uses_brackets:
            # 1頭でも出走する枠は購入可能
            return {r.frame_number for r in active}
        return {r.horse_number for r in active}

    @staticmethod
    def _is_valid_stake(unit_stake: Any, settings: EngineSettings) -> bool:
        if isinstance(unit_stake, bool) or not isinstance(unit_stake, int):
            return False
        if unit_stake < settings.min_unit or unit_stake > settings.max_stake:
            return False
        return unit_stake % settings.min_unit == 0

    @staticmethod
    def _is_entry_id(value: Any) -> bool:
        return isinstance(value, int) and not isinstance(value, bool)

    @staticmethod
    def _flatten(raw_input: List[Any]) -> List[Any]:
        flat = []
        for item in raw_input:
            if isinstance(item, (list, tuple)):
                flat.extend(item)
            else:
                flat.append(item)
        return flat

    @staticmethod
    def _has_duplicates(buy_type: BuyType, raw_input: List[Any]) -> bool:
        if buy_type == BuyType.FORMATION:
            # グループ内の重複のみエラー。グループ間の重複は展開時に除外する
            for group in raw_input:
                if isinstance(group, (list, tuple)) and len(set(group)) != len(group):
                    return True
            return False

        flat = CombinationBuilder._flatten(raw_input)
        return len(set(flat)) != len(flat)

    @staticmethod
    def _shape_groups(
        rule: WagerRule,
        buy_type: BuyType,
        raw_input: List[Any],
        settings: EngineSettings,
    ) -> Tuple[List[List[int]], Optional[BetValidationError]]:
        """入力の形と選択数をチェックし、グループ形式に揃える"""
        r = rule.required_picks
        is_group = [isinstance(item, (list, tuple)) for item in raw_input]

        if buy_type == BuyType.NORMAL:
            if raw_input and all(is_group):
                # [[1], [2]] 形式は着順ごとに1頭ずつでなければならない
                if any(len(group) != 1 for group in raw_input):
                    return [], BetValidationError.WRONG_SELECTION_COUNT
                entries = [group[0] for group in raw_input]
            elif any(is_group):
                return [], BetValidationError.WRONG_SELECTION_COUNT
            else:
                entries = list(raw_input)

            if len(entries) != r:
                return [], BetValidationError.WRONG_SELECTION_COUNT
            return [entries], None

        if buy_type == BuyType.BOX:
            if len(raw_input) == 1 and is_group[0]:
                entries = list(raw_input[0])
            elif any(is_group):
                return [], BetValidationError.WRONG_SELECTION_COUNT
            else:
                entries = list(raw_input)

            if len(entries) < r:
                return [], BetValidationError.WRONG_SELECTION_COUNT
            if len(entries) > settings.box_max(r):
                return [], BetValidationError.TOO_MANY_SELECTIONS
            return [entries], None

        # FORMATION
        if r == 1 or not raw_input or not all(is_group):
            return [], BetValidationError.WRONG_SELECTION_COUNT
        expected_groups = r if rule.ordered else 2
        if len(raw_input) != expected_groups:
            return [], BetValidationError.WRONG_SELECTION_COUNT
        if any(len(group) == 0 for group in raw_input):
            return [], BetValidationError.WRONG_SELECTION_COUNT
        return [list(group) for group in raw_input], None

    @staticmethod
    def _generate(rule: WagerRule, buy_type: BuyType, groups: List[List[int]]) -> List[List[int]]:
        r = rule.required_picks

        if buy_type == BuyType.NORMAL:
            return [list(groups[0])]

        if buy_type == BuyType.BOX:
            horses = groups[0]
            # 順列か組み合わせか
            if rule.ordered:
                return [list(x) for x in itertools.permutations(horses, r)]
            return [list(x) for x in itertools.combinations(horses, r)]

        if rule.ordered:
            # 着順ごとの候補から1頭ずつ選ぶ直積。同じ馬が2回出る組は除外
            return [
                list(x) for x in itertools.product(*groups)
                if len(set(x)) == len(x)
            ]

        # 着順なし: 軸1頭 + 相手から (r-1) 頭
        axis, partners = groups
        combs = []
        for a in axis:
            for p_comb in itertools.combinations(partners, r - 1):
                comb = (a,) + p_comb
                if len(set(comb)) == len(comb):
                    combs.append(sorted(comb))
        return combs

    @staticmethod
    def _dedupe(rule: WagerRule, combinations: List[List[int]]) -> List[List[int]]:
        seen = set()
        unique = []
        for comb in combinations:
            key = tuple(comb) if rule.ordered else tuple(sorted(comb))
            if key in seen:
                continue
            seen.add(key)
            unique.append(comb)
        return unique


def combination_key(bet_type: Union[str, BetType], combination: Sequence[int]) -> Tuple[int, ...]:
    """式別に応じた比較キー（着順ありはそのまま、着順なしはソート）"""
    if wager_rule(bet_type).ordered:
        return tuple(combination)
    return tuple(sorted(combination))
