"""
Unit Tests - Risk Reports
"""
from datetime import datetime, timedelta, timezone

import pytest

from retail_analytics.reporting import high_frequency_customers, outlier_transactions


def _burst(customer_id, start, count, step, first_id=1):
    return [
        (first_id + i, customer_id, 1, start + step * i, 10)
        for i in range(count)
    ]


class TestHighFrequencyCustomers:
    """Tests for the burst-of-transactions heuristic"""

    def test_flags_burst(self, snapshot_factory):
        snapshot = snapshot_factory(
            _burst(1, datetime(2024, 5, 1, 8), 11, timedelta(minutes=30))
            + _burst(2, datetime(2024, 5, 1, 8), 11, timedelta(hours=3), first_id=100)
        )

        result = high_frequency_customers(snapshot, as_of=datetime(2024, 6, 1))

        assert result["customer_id"].to_list() == [1]
        assert result["transaction_count"].to_list() == [11]
        assert result["first_transaction"].to_list() == [datetime(2024, 5, 1, 8)]
        assert result["last_transaction"].to_list() == [datetime(2024, 5, 1, 13)]

    def test_count_threshold_is_exclusive(self, snapshot_factory):
        snapshot = snapshot_factory(_burst(1, datetime(2024, 5, 1), 10, timedelta(minutes=1)))

        assert high_frequency_customers(snapshot, as_of=datetime(2024, 6, 1)).height == 0

    def test_window_is_exclusive(self, snapshot_factory):
        # 11 transactions spanning exactly 24 hours
        snapshot = snapshot_factory(_burst(1, datetime(2024, 5, 1), 11, timedelta(hours=2, minutes=24)))

        assert high_frequency_customers(snapshot, as_of=datetime(2024, 6, 1)).height == 0

    def test_only_transactions_up_to_reference_time(self, snapshot_factory):
        snapshot = snapshot_factory(_burst(1, datetime(2024, 5, 1, 8), 11, timedelta(minutes=30)))

        # Only the first six are visible at 10:30
        result = high_frequency_customers(snapshot, as_of=datetime(2024, 5, 1, 10, 30))

        assert result.height == 0

    def test_custom_parameters(self, snapshot_factory):
        snapshot = snapshot_factory(_burst(1, datetime(2024, 5, 1), 4, timedelta(hours=10)))

        result = high_frequency_customers(
            snapshot,
            as_of=datetime(2024, 6, 1),
            min_transactions=3,
            window=timedelta(days=2),
        )

        assert result["customer_id"].to_list() == [1]

    def test_undated_transactions_not_counted(self, snapshot_factory):
        rows = _burst(1, datetime(2024, 5, 1, 8), 11, timedelta(minutes=30))
        rows += [(200 + i, 1, 1, None, 10) for i in range(3)]

        result = high_frequency_customers(snapshot_factory(rows), as_of=datetime(2024, 6, 1))

        assert result["transaction_count"].to_list() == [11]
        assert result["first_transaction"].to_list() == [datetime(2024, 5, 1, 8)]

    def test_timezone_aware_reference_time(self, snapshot_factory):
        snapshot = snapshot_factory(_burst(1, datetime(2024, 5, 1, 8), 11, timedelta(minutes=30)))

        utc = high_frequency_customers(snapshot, as_of=datetime(2024, 9, 1, tzinfo=timezone.utc))
        # 12:30 at UTC+2 is 10:30 UTC, before the burst completes
        early = high_frequency_customers(
            snapshot,
            as_of=datetime(2024, 5, 1, 12, 30, tzinfo=timezone(timedelta(hours=2))),
        )

        assert utc["customer_id"].to_list() == [1]
        assert early.height == 0

    def test_invalid_window(self, sample_snapshot, as_of):
        with pytest.raises(ValueError):
            high_frequency_customers(sample_snapshot, as_of=as_of, window=timedelta(0))


class TestOutlierTransactions:
    """Tests for Z-score outliers"""

    @pytest.fixture
    def skewed_snapshot(self, snapshot_factory):
        rows = [(i, 1, 1, datetime(2024, 1, i), 100) for i in range(1, 11)]
        rows.append((11, 2, 1, datetime(2024, 1, 11), 1200))
        return snapshot_factory(rows)

    def test_flags_outlier_with_population_std(self, skewed_snapshot):
        result = outlier_transactions(skewed_snapshot)

        assert result["transaction_id"].to_list() == [11]
        assert result["amount_spent"].to_list() == [1200.0]
        # One outlier among n values sits sqrt(n - 1) population deviations out
        assert result["z_score"][0] == pytest.approx(3.1623, abs=1e-4)

    def test_sample_std_convention(self, skewed_snapshot):
        result = outlier_transactions(skewed_snapshot, ddof=1)

        assert result["z_score"][0] == pytest.approx(3.0151, abs=1e-4)

    def test_threshold_separates_conventions(self, skewed_snapshot):
        assert outlier_transactions(skewed_snapshot, z_threshold=3.1).height == 1
        assert outlier_transactions(skewed_snapshot, z_threshold=3.1, ddof=1).height == 0

    def test_boundary_is_not_an_outlier(self, snapshot_factory):
        # Ten values: the lone outlier is exactly 3 population deviations out
        rows = [(i, 1, 1, datetime(2024, 1, i), 100) for i in range(1, 10)]
        rows.append((10, 1, 1, datetime(2024, 1, 10), 1000))

        assert outlier_transactions(snapshot_factory(rows)).height == 0

    def test_low_outlier(self, snapshot_factory):
        rows = [(i, 1, 1, datetime(2024, 1, i), 1000) for i in range(1, 12)]
        rows.append((12, 1, 1, datetime(2024, 1, 12), 0))

        result = outlier_transactions(snapshot_factory(rows))

        assert result["transaction_id"].to_list() == [12]
        assert result["z_score"][0] < 0

    def test_no_spread(self, snapshot_factory):
        rows = [(i, 1, 1, datetime(2024, 1, i), 50) for i in range(1, 6)]
        assert outlier_transactions(snapshot_factory(rows)).height == 0

    def test_empty_and_single(self, snapshot_factory):
        empty = outlier_transactions(snapshot_factory([]))
        single = outlier_transactions(snapshot_factory([(1, 1, 1, datetime(2024, 1, 1), 5)]))

        assert empty.height == 0
        assert single.height == 0
        assert empty.columns == ["transaction_id", "customer_id", "transaction_date", "amount_spent", "z_score"]

    def test_invalid_ddof(self, sample_snapshot):
        with pytest.raises(ValueError):
            outlier_transactions(sample_snapshot, ddof=2)
