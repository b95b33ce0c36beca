"""
みんかぶ Metrics Source

財務ページ (/stock/{code}/fundamental) から財務指標を抽出
"""

from .base import HtmlMetricsSource


class MinkabuMetricsSource(HtmlMetricsSource):
    """みんかぶ 財務ページのスクレイピング"""

    name = "minkabu"
    url_template = "https://minkabu.jp/stock/{code}/fundamental"

    patterns = {
        "dividend_payout_ratio": [
            r"配当性向[\s\S]*?([0-9.]+)\s*%",
        ],
        "dividend_yield": [
            r"配当利回り[\s\S]*?([0-9.]+)\s*%",
        ],
        "equity_ratio": [
            r"自己資本比率[\s\S]*?([0-9.]+)\s*%",
        ],
        "roe": [
            r"ROE[\s\S]*?(-?[0-9.]+)\s*%",
        ],
        "per": [
            r"PER[\s\S]*?([0-9.]+)\s*倍",
        ],
        "pbr": [
            r"PBR[\s\S]*?([0-9.]+)\s*倍",
        ],
        "eps": [
            r"EPS[\s\S]*?(-?[0-9,.]+)\s*円",
        ],
        "bps": [
            r"BPS[\s\S]*?([0-9,.]+)\s*円",
        ],
    }
