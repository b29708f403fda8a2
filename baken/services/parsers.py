import logging
import unicodedata
from typing import Any, List, Union

from baken.constants import BET_TYPE_MAP, BUY_TYPE_MAP, ROMAJI_BET_TYPE_MAP
from baken.schemas import BetType, BuyType

logger = logging.getLogger(__name__)


def _normalize_label(label: str) -> str:
    # 全角数字・英字を半角へ（"３連複" と "3連複" を同一視）
    return unicodedata.normalize("NFKC", str(label)).strip()


def parse_bet_type(label: Union[str, BetType]) -> BetType:
    """式別ラベル（英語コード / 日本語 / ローマ字）を BetType に変換する"""
    if isinstance(label, BetType):
        return label

    raw = _normalize_label(label)
    if raw.upper() in BetType.__members__:
        return BetType(raw.upper())

    # BET_TYPE_MAP のキーは全角数字なので正規化してから比較する
    for jp_name, code in BET_TYPE_MAP.items():
        if _normalize_label(jp_name) == raw:
            return BetType(code)
    if raw.startswith("三連"):
        return parse_bet_type("3連" + raw[2:])

    code = ROMAJI_BET_TYPE_MAP.get(raw.lower())
    if code:
        return BetType(code)

    raise ValueError(f"Unknown bet type: {label!r}")


def parse_buy_type(label: Union[str, BuyType]) -> BuyType:
    if isinstance(label, BuyType):
        return label

    raw = _normalize_label(label)
    if raw.upper() in BuyType.__members__:
        return BuyType(raw.upper())

    code = BUY_TYPE_MAP.get(raw) or BUY_TYPE_MAP.get(raw.lower())
    if code:
        return BuyType(code)

    raise ValueError(f"Unknown buy type: {label!r}")


def parse_number(value: Any) -> int:
    """馬番・枠番を整数にする。"03" のようなゼロ埋め文字列も受け付ける"""
    if isinstance(value, bool):
        raise ValueError(f"Invalid horse number: {value!r}")
    if isinstance(value, int):
        return value
    text = _normalize_label(value)
    if not text.isdigit():
        raise ValueError(f"Invalid horse number: {value!r}")
    return int(text)


def parse_selections(raw: List[Any]) -> List[Any]:
    """フラット配列 / 配列の配列のどちらでも、要素を整数化して同じ形で返す"""
    parsed = []
    for item in raw:
        if isinstance(item, (list, tuple)):
            parsed.append([parse_number(x) for x in item])
        else:
            parsed.append(parse_number(item))
    return parsed
