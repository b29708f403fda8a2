from dataclasses import dataclass

# JRAの日本語 → 英語コード変換マップ (設計書準拠)
BET_TYPE_MAP = {
    "単勝": "WIN",
    "複勝": "PLACE",
    "枠連": "BRACKET_QUINELLA",
    "馬連": "QUINELLA",
    "ワイド": "QUINELLA_PLACE",
    "馬単": "EXACTA",
    "３連複": "TRIO",
    "３連単": "TRIFECTA"
}

# Discord Bot 側で使われていたローマ字コード
ROMAJI_BET_TYPE_MAP = {
    "tansho": "WIN",
    "fukusho": "PLACE",
    "wakuren": "BRACKET_QUINELLA",
    "umaren": "QUINELLA",
    "wide": "QUINELLA_PLACE",
    "umatan": "EXACTA",
    "sanrenpuku": "TRIO",
    "sanrentan": "TRIFECTA",
}

BUY_TYPE_MAP = {
    "通常": "NORMAL",
    "ボックス": "BOX",
    "フォーメーション": "FORMATION",
    "normal": "NORMAL",
    "single": "NORMAL",
    "box": "BOX",
    "formation": "FORMATION",
}


@dataclass(frozen=True)
class WagerRule:
    required_picks: int
    ordered: bool
    uses_brackets: bool = False


# 式別ごとの選択頭数・着順の有無
WAGER_RULES = {
    "WIN": WagerRule(required_picks=1, ordered=False),
    "PLACE": WagerRule(required_picks=1, ordered=False),
    "BRACKET_QUINELLA": WagerRule(required_picks=2, ordered=False, uses_brackets=True),
    "QUINELLA": WagerRule(required_picks=2, ordered=False),
    "QUINELLA_PLACE": WagerRule(required_picks=2, ordered=False),
    "EXACTA": WagerRule(required_picks=2, ordered=True),
    "TRIO": WagerRule(required_picks=3, ordered=False),
    "TRIFECTA": WagerRule(required_picks=3, ordered=True),
}


def wager_rule(bet_type) -> WagerRule:
    code = getattr(bet_type, "value", bet_type)
    return WAGER_RULES[code]


# 金額は100pt単位、1点あたり最大10,000pt
MIN_STAKE_UNIT = 100
MAX_STAKE = 10000

# ボックス購入の最大選択数（組み合わせ爆発の抑止）
# 単勝・複勝はJRAの最大出走頭数
BOX_MAX_SELECTIONS = {
    1: 18,
    2: 8,
    3: 7,
}
