"""Tests for the financial metrics fallback chain."""

from kabu_tracker.config import Settings
from kabu_tracker.services.metrics_resolver import MetricsResolver, build_metrics_sources
from kabu_tracker.services.sources.base import FinancialMetrics

from .conftest import MockMetricsSource


class TestMetricsResolver:
    async def test_first_source_with_data_wins_without_merge(self):
        partial = FinancialMetrics(source="b", per=12.0, pbr=1.1, roe=8.5)
        full = FinancialMetrics(
            source="c", dividend_payout_ratio=30.0, dividend_yield=2.0, equity_ratio=40.0,
            roe=9.0, per=13.0, pbr=1.2, eps=100.0, bps=900.0,
        )
        source_a = MockMetricsSource("a", result=None)
        source_b = MockMetricsSource("b", result=partial)
        source_c = MockMetricsSource("c", result=full)

        result = await MetricsResolver([source_a, source_b, source_c]).resolve("7203")

        assert result is partial
        assert result.matched_fields() == ["roe", "per", "pbr"]
        assert result.dividend_yield is None
        assert source_c.calls == 0

    async def test_record_without_fields_counts_as_miss(self):
        empty = FinancialMetrics(source="a")
        found = FinancialMetrics(source="b", eps=50.0)

        result = await MetricsResolver([
            MockMetricsSource("a", result=empty),
            MockMetricsSource("b", result=found),
        ]).resolve("7203")

        assert result.source == "b"

    async def test_raising_source_is_skipped(self):
        found = FinancialMetrics(source="b", per=10.0)
        failing = MockMetricsSource("a", error=RuntimeError("boom"))

        result = await MetricsResolver([failing, MockMetricsSource("b", result=found)]).resolve("7203")

        assert result is found
        assert failing.calls == 1

    async def test_all_sources_fail(self):
        sources = [
            MockMetricsSource("a", result=None),
            MockMetricsSource("b", error=ValueError("bad markup")),
            MockMetricsSource("c", result=None),
        ]

        assert await MetricsResolver(sources).resolve("7203") is None
        assert [source.calls for source in sources] == [1, 1, 1]


class TestBuildMetricsSources:
    def test_default_order(self):
        sources = build_metrics_sources(Settings())
        assert [source.name for source in sources] == ["yahoo_jp", "minkabu", "yfinance"]

    def test_keyed_sources_require_keys(self):
        settings = Settings(metrics_sources="fmp,yahoo_jp,edinet", fmp_api_key=None, edinet_api_key=None)
        assert [source.name for source in build_metrics_sources(settings)] == ["yahoo_jp"]

    def test_keyed_sources_and_unknown_names(self):
        settings = Settings(metrics_sources="minkabu, FMP ,nope,edinet", fmp_api_key="k1", edinet_api_key="k2")
        assert [source.name for source in build_metrics_sources(settings)] == ["minkabu", "fmp", "edinet"]
