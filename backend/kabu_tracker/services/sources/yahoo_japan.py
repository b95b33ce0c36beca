"""
Yahoo!ファイナンス (Japan) Metrics Source

銘柄詳細ページの「参考指標」から配当利回り・PER・PBR・EPS・BPS を抽出
"""

from .base import HtmlMetricsSource


class YahooJapanMetricsSource(HtmlMetricsSource):
    """Yahoo!ファイナンス 銘柄ページのスクレイピング"""

    name = "yahoo_jp"
    url_template = "https://finance.yahoo.co.jp/quote/{code}.T"

    # Label, then markup, then the value cell. Labels carry the basis in
    # full-width or ASCII parentheses, e.g. 「PER（会社予想）」.
    patterns = {
        "dividend_yield": [
            r"配当利回り[（(]会社予想[）)][^>]*>[\s\S]*?<[^>]+>([0-9.]+)%",
            r"配当利回り[\s\S]{0,300}?>\s*([0-9.]+)\s*<[^>]*>\s*%",
        ],
        "per": [
            r"PER[（(]会社予想[）)][^>]*>[\s\S]*?<[^>]+>([0-9.]+)倍",
            r"PER[\s\S]{0,300}?>\s*([0-9.]+)\s*<[^>]*>\s*倍",
        ],
        "pbr": [
            r"PBR[（(]実績[）)][^>]*>[\s\S]*?<[^>]+>([0-9.]+)倍",
            r"PBR[\s\S]{0,300}?>\s*([0-9.]+)\s*<[^>]*>\s*倍",
        ],
        "eps": [
            r"EPS[（(]会社予想[）)][^>]*>[\s\S]*?<[^>]+>(-?[0-9,.]+)円",
            r"EPS[\s\S]{0,300}?>\s*(-?[0-9,.]+)\s*<[^>]*>\s*円",
        ],
        "bps": [
            r"BPS[（(]実績[）)][^>]*>[\s\S]*?<[^>]+>([0-9,.]+)円",
            r"BPS[\s\S]{0,300}?>\s*([0-9,.]+)\s*<[^>]*>\s*円",
        ],
    }
