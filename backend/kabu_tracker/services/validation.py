"""
Input Validation

Field checks shared by the stock, dividend and analysis services.
Each raises ValidationError naming the offending field.
"""

import logging
import math
import re
from typing import Optional

from ..exceptions import ValidationError

logger = logging.getLogger(__name__)

CODE_PATTERN = re.compile(r"^\d{4}$")
PAYOUT_RATIO_MAX = 1000.0
YEAR_MIN, YEAR_MAX = 2000, 2100


def _is_number(value) -> bool:
    """Finite int or float; bool, NaN and infinities are rejected"""
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def validate_code(code) -> str:
    """銘柄コード: 4桁の数字"""
    if not isinstance(code, str) or not CODE_PATTERN.match(code):
        raise ValidationError("有効な4桁の銘柄コードを入力してください", field="code")
    return code


def validate_name(name) -> str:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("銘柄名を入力してください", field="name")
    return name.strip()


def validate_amount(value, field: str, label: str, allow_zero: bool = True) -> float:
    """
    Non-negative (or strictly positive) number

    Args:
        value: Raw input
        field: Field name reported in the error
        label: Japanese label used in the message
        allow_zero: False requires a strictly positive value
    """
    if not _is_number(value) or value < 0 or (not allow_zero and value == 0):
        bound = "0以上の数" if allow_zero else "正の数"
        raise ValidationError(f"{label}は{bound}である必要があります", field=field)
    return float(value)


def validate_shares(value, allow_zero: bool = True) -> int:
    """株数: 整数"""
    is_integer = _is_number(value) and float(value).is_integer()
    if not is_integer or value < 0 or (not allow_zero and value == 0):
        bound = "0以上の整数" if allow_zero else "正の整数"
        raise ValidationError(f"株数は{bound}である必要があります", field="shares")
    return int(value)


def normalize_memo(memo, max_length: int) -> Optional[str]:
    """
    メモの正規化

    Over-long memos are truncated to max_length, never rejected;
    blank memos become None.
    """
    if memo is None:
        return None
    if not isinstance(memo, str):
        raise ValidationError("メモは文字列である必要があります", field="memo")

    if len(memo) > max_length:
        logger.warning(f"メモが{max_length}文字を超えています。切り詰めます: {len(memo)}文字 -> {max_length}文字")
        memo = memo[:max_length]

    return memo if memo.strip() else None


def normalize_payout_ratio(value) -> Optional[float]:
    """配当性向: [0, 1000] に丸め込み、小数点以下2桁"""
    if value is None:
        return None
    if not _is_number(value):
        raise ValidationError("配当性向は数値である必要があります", field="payout_ratio")
    clamped = min(max(float(value), 0.0), PAYOUT_RATIO_MAX)
    return round(clamped, 2)


def validate_stock_id(value, field: str = "stock_id") -> int:
    if not _is_number(value) or not float(value).is_integer() or value <= 0:
        raise ValidationError("無効な銘柄IDです", field=field)
    return int(value)


def validate_year(value) -> int:
    if not _is_number(value) or not float(value).is_integer() or not (YEAR_MIN <= value <= YEAR_MAX):
        raise ValidationError("無効な年度です", field="year")
    return int(value)
