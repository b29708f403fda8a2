import math

import pytest
from baken.config import EngineSettings
from baken.schemas import BetType, BetValidationError, BuyType, RosterEntry, Ticket
from baken.services.combination_builder import CombinationBuilder

# 1-8番、8頭立て（枠番 = 馬番）
ROSTER = [RosterEntry(horse_number=i, frame_number=i) for i in range(1, 9)]
SETTINGS = EngineSettings()


def build(bet_type, buy_type, raw_input, unit_stake=100, roster=ROSTER):
    return CombinationBuilder.build(bet_type, buy_type, raw_input, roster, unit_stake, settings=SETTINGS)


def test_win_single():
    ticket = build(BetType.WIN, BuyType.NORMAL, [5])

    assert isinstance(ticket, Ticket)
    assert ticket.combinations == [[5]]
    assert ticket.total_points == 1
    assert ticket.total_cost == 100
    assert ticket.status == "PENDING"


def test_quinella_box():
    ticket = build(BetType.QUINELLA, BuyType.BOX, [1, 2, 3])

    assert sorted(sorted(c) for c in ticket.combinations) == [[1, 2], [1, 3], [2, 3]]
    assert ticket.total_cost == 300


def test_exacta_box_contains_both_orders():
    ticket = build(BetType.EXACTA, BuyType.BOX, [1, 2, 3])

    assert len(ticket.combinations) == 6
    assert [1, 2] in ticket.combinations
    assert [2, 1] in ticket.combinations
    assert ticket.total_cost == 600


def test_quinella_box_has_each_pair_once():
    ticket = build(BetType.QUINELLA, BuyType.BOX, [1, 2, 3])

    pairs = [c for c in ticket.combinations if set(c) == {1, 2}]
    assert len(pairs) == 1


@pytest.mark.parametrize(
    "bet_type",
    [BetType.QUINELLA, BetType.QUINELLA_PLACE, BetType.EXACTA, BetType.TRIO, BetType.TRIFECTA],
)
def test_box_cardinality(bet_type):
    r = 3 if bet_type in (BetType.TRIO, BetType.TRIFECTA) else 2
    ordered = bet_type in (BetType.EXACTA, BetType.TRIFECTA)
    max_n = 7 if r == 3 else 8

    for n in range(r, max_n + 1):
        ticket = build(bet_type, BuyType.BOX, list(range(1, n + 1)))
        expected = math.perm(n, r) if ordered else math.comb(n, r)
        assert ticket.total_points == expected
        assert ticket.total_cost == 100 * expected
        for comb in ticket.combinations:
            assert len(set(comb)) == len(comb) == r


def test_trifecta_formation():
    ticket = build(BetType.TRIFECTA, BuyType.FORMATION, [[1, 2], [3], [4, 5]])

    assert ticket.combinations == [[1, 3, 4], [1, 3, 5], [2, 3, 4], [2, 3, 5]]
    assert ticket.total_cost == 400


def test_exacta_formation_drops_repeated_horse():
    # 1着: 1,2 / 2着: 1,2 → 1-1, 2-2 は除外
    ticket = build(BetType.EXACTA, BuyType.FORMATION, [[1, 2], [1, 2]], unit_stake=200)

    assert ticket.combinations == [[1, 2], [2, 1]]
    assert ticket.total_cost == 400


def test_quinella_place_formation_axis_in_partners_collapses():
    # 軸: 1,2 / 相手: 1,2,3 → 1-2, 1-3, 2-3（2-1 は 1-2 と同一）
    ticket = build(BetType.QUINELLA_PLACE, BuyType.FORMATION, [[1, 2], [1, 2, 3]])

    assert ticket.combinations == [[1, 2], [1, 3], [2, 3]]
    assert ticket.total_cost == 300


def test_trio_formation_axis_and_partners():
    ticket = build(BetType.TRIO, BuyType.FORMATION, [[1], [2, 3, 4]])

    assert ticket.combinations == [[1, 2, 3], [1, 2, 4], [1, 3, 4]]


def test_exacta_single_accepts_position_groups():
    ticket = build(BetType.EXACTA, BuyType.NORMAL, [[3], [1]])

    assert ticket.combinations == [[3, 1]]
    assert ticket.content.selections == [[3], [1]]


def test_exacta_single_rejects_multi_horse_position():
    result = build(BetType.EXACTA, BuyType.NORMAL, [[3, 4], [1]])
    assert result == BetValidationError.WRONG_SELECTION_COUNT


def test_bracket_quinella_uses_frame_numbers():
    roster = [
        RosterEntry(horse_number=1, frame_number=1),
        RosterEntry(horse_number=2, frame_number=1),
        RosterEntry(horse_number=3, frame_number=2),
        RosterEntry(horse_number=4, frame_number=3, withdrawn=True),
    ]
    ticket = build(BetType.BRACKET_QUINELLA, BuyType.NORMAL, [1, 2], roster=roster)
    assert ticket.combinations == [[1, 2]]

    # 枠3 は出走馬がいない
    result = build(BetType.BRACKET_QUINELLA, BuyType.NORMAL, [1, 3], roster=roster)
    assert result == BetValidationError.UNKNOWN_OR_WITHDRAWN_ENTRY


@pytest.mark.parametrize("stake", [0, -100, 150, 10100, 99, "100", 100.0, True])
def test_invalid_stake(stake):
    assert build(BetType.WIN, BuyType.NORMAL, [1], unit_stake=stake) == BetValidationError.INVALID_STAKE_UNIT


def test_max_stake_allowed():
    ticket = build(BetType.WIN, BuyType.NORMAL, [1], unit_stake=10000)
    assert ticket.total_cost == 10000


def test_withdrawn_entry_in_box():
    roster = ROSTER[:3] + [RosterEntry(horse_number=4, frame_number=4, withdrawn=True)]
    result = build(BetType.QUINELLA, BuyType.BOX, [1, 2, 4], roster=roster)
    assert result == BetValidationError.UNKNOWN_OR_WITHDRAWN_ENTRY


def test_unknown_entry():
    assert build(BetType.WIN, BuyType.NORMAL, [9]) == BetValidationError.UNKNOWN_OR_WITHDRAWN_ENTRY


def test_duplicate_entry_in_box():
    assert build(BetType.QUINELLA, BuyType.BOX, [1, 2, 2]) == BetValidationError.DUPLICATE_ENTRY


def test_duplicate_entry_in_single():
    assert build(BetType.QUINELLA, BuyType.NORMAL, [1, 1]) == BetValidationError.DUPLICATE_ENTRY


def test_duplicate_inside_formation_group():
    result = build(BetType.TRIFECTA, BuyType.FORMATION, [[1, 1], [2], [3]])
    assert result == BetValidationError.DUPLICATE_ENTRY


def test_validation_order_stake_before_roster():
    # 金額と出走馬の両方が不正なら金額エラーが優先
    result = build(BetType.QUINELLA, BuyType.BOX, [1, 99, 99], unit_stake=150)
    assert result == BetValidationError.INVALID_STAKE_UNIT


def test_validation_order_roster_before_duplicate():
    result = build(BetType.QUINELLA, BuyType.BOX, [99, 99])
    assert result == BetValidationError.UNKNOWN_OR_WITHDRAWN_ENTRY


def test_single_wrong_count():
    assert build(BetType.TRIO, BuyType.NORMAL, [1, 2]) == BetValidationError.WRONG_SELECTION_COUNT


def test_box_too_few():
    assert build(BetType.TRIFECTA, BuyType.BOX, [1, 2]) == BetValidationError.WRONG_SELECTION_COUNT


def test_box_too_many():
    assert build(BetType.QUINELLA, BuyType.BOX, list(range(1, 9))) != BetValidationError.TOO_MANY_SELECTIONS
    roster = [RosterEntry(horse_number=i, frame_number=(i + 1) // 2) for i in range(1, 10)]
    result = build(BetType.QUINELLA, BuyType.BOX, list(range(1, 10)), roster=roster)
    assert result == BetValidationError.TOO_MANY_SELECTIONS
    assert build(BetType.TRIO, BuyType.BOX, list(range(1, 9))) == BetValidationError.TOO_MANY_SELECTIONS


def test_formation_group_count():
    assert build(BetType.TRIFECTA, BuyType.FORMATION, [[1], [2]]) == BetValidationError.WRONG_SELECTION_COUNT
    assert build(BetType.TRIO, BuyType.FORMATION, [[1], [2], [3]]) == BetValidationError.WRONG_SELECTION_COUNT


def test_formation_empty_group():
    assert build(BetType.EXACTA, BuyType.FORMATION, [[1], []]) == BetValidationError.WRONG_SELECTION_COUNT


def test_formation_flat_input_rejected():
    assert build(BetType.EXACTA, BuyType.FORMATION, [1, 2]) == BetValidationError.WRONG_SELECTION_COUNT


def test_win_formation_not_supported():
    assert build(BetType.WIN, BuyType.FORMATION, [[1], [2]]) == BetValidationError.WRONG_SELECTION_COUNT


def test_formation_all_repeated_is_empty():
    result = build(BetType.EXACTA, BuyType.FORMATION, [[1], [1]])
    assert result == BetValidationError.EMPTY_COMBINATION_SET


def test_settings_override():
    settings = EngineSettings(min_unit=100, max_stake=1000)
    result = CombinationBuilder.build(BetType.WIN, BuyType.NORMAL, [1], ROSTER, 2000, settings=settings)
    assert result == BetValidationError.INVALID_STAKE_UNIT


def test_string_labels_are_accepted():
    ticket = build("QUINELLA", "BOX", [1, 2])
    assert ticket.bet_type == BetType.QUINELLA
    assert ticket.buy_type == BuyType.BOX


def test_duplicate_checked_before_selection_count():
    # 重複と選択数不足の両方に該当する場合は重複エラー
    assert build(BetType.TRIO, BuyType.BOX, [1, 1]) == BetValidationError.DUPLICATE_ENTRY


def test_trio_formation_shared_partners_collapse():
    # 軸1-相手2,3 と 軸2-相手1,3 は同じ 1-2-3
    ticket = build(BetType.TRIO, BuyType.FORMATION, [[1, 2], [1, 2, 3]])

    assert ticket.combinations == [[1, 2, 3]]
    assert ticket.total_cost == 100


@pytest.mark.parametrize(
    "bet_type, buy_type, raw_input",
    [
        (BetType.QUINELLA, BuyType.NORMAL, [2, 1]),
        (BetType.TRIFECTA, BuyType.NORMAL, [[3], [1], [2]]),
        (BetType.WIN, BuyType.NORMAL, [5]),
        (BetType.EXACTA, BuyType.BOX, [1, 2, 3]),
        (BetType.TRIO, BuyType.FORMATION, [[1], [2, 3, 4]]),
    ],
)
def test_stored_selections_rebuild_same_ticket(bet_type, buy_type, raw_input):
    ticket = build(bet_type, buy_type, raw_input)
    rebuilt = build(bet_type, buy_type, ticket.content.selections)

    assert isinstance(rebuilt, Ticket)
    assert rebuilt.combinations == ticket.combinations
    assert rebuilt.content == ticket.content
