"""Tests for signal models and status advancement."""

import pytest
from datetime import datetime, timedelta, timezone

from pydantic import ValidationError

from core.models import Signal, SignalStatus, SignalType


T0 = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def _make_signal(**overrides) -> Signal:
    fields = dict(
        symbol="SOLUSDT",
        created_at=T0,
        signal_type=SignalType.MOMENTUM_BREAKOUT,
        entry_price=100.0,
        tps=[101.0, 102.5, 104.0],
        sl=98.0,
        rsi=60.0,
        change_24h=1.5,
    )
    fields.update(overrides)
    return Signal(**fields)


class TestSignalStatus:
    """Tests for the ranked status enum."""

    def test_ranks_strictly_ordered(self):
        ranks = [s.rank for s in SignalStatus]
        assert ranks == sorted(ranks)
        assert len(set(ranks)) == len(ranks)

    def test_tp_levels(self):
        assert SignalStatus.ACTIVE.tp_level == 0
        assert SignalStatus.TP2_HIT.tp_level == 2
        assert SignalStatus.SL_HIT.tp_level is None

    def test_terminal_statuses(self):
        assert SignalStatus.SL_HIT.is_terminal
        assert SignalStatus.CLOSED.is_terminal
        assert not SignalStatus.TP3_HIT.is_terminal

    def test_for_target(self):
        assert SignalStatus.for_target(1) == SignalStatus.TP1_HIT
        assert SignalStatus.for_target(3) == SignalStatus.TP3_HIT

    @pytest.mark.parametrize("level", [0, 4])
    def test_for_target_out_of_range(self, level):
        with pytest.raises(ValueError):
            SignalStatus.for_target(level)


class TestSignalModel:
    """Tests for Signal construction and validation."""

    def test_signal_creation(self):
        signal = _make_signal()

        assert signal.id
        assert signal.status == SignalStatus.ACTIVE
        assert signal.hit_time is None
        assert signal.current_price == signal.entry_price
        assert signal.notification_id is None

    def test_id_is_deterministic(self):
        assert _make_signal().id == _make_signal().id
        assert _make_signal().id != _make_signal(created_at=T0 + timedelta(seconds=1)).id

    def test_dedup_key(self):
        assert _make_signal().dedup_key == ("SOLUSDT", T0)

    def test_base_asset(self):
        assert _make_signal(symbol="DOGEUSDT").base_asset == "DOGE"

    def test_targets_must_ascend(self):
        with pytest.raises(ValidationError):
            _make_signal(tps=[101.0, 101.0, 104.0])

    def test_requires_three_targets(self):
        with pytest.raises(ValidationError):
            _make_signal(tps=[101.0, 102.0])

    def test_stop_below_entry(self):
        with pytest.raises(ValidationError):
            _make_signal(sl=100.0)


class TestStatusAdvancement:
    """Tests for Signal.update_price."""

    def test_price_between_levels_stays_active(self):
        signal = _make_signal()

        changed = signal.update_price(100.5, T0 + timedelta(minutes=1))

        assert changed is False
        assert signal.status == SignalStatus.ACTIVE
        assert signal.current_price == 100.5
        assert signal.hit_time is None

    @pytest.mark.parametrize(
        "price,expected",
        [
            (101.0, SignalStatus.TP1_HIT),
            (103.0, SignalStatus.TP2_HIT),
            (110.0, SignalStatus.TP3_HIT),
            (98.0, SignalStatus.SL_HIT),
            (90.0, SignalStatus.SL_HIT),
        ],
    )
    def test_active_transitions(self, price, expected):
        signal = _make_signal()
        hit_at = T0 + timedelta(minutes=5)

        assert signal.update_price(price, hit_at) is True
        assert signal.status == expected
        assert signal.hit_time == hit_at

    def test_tp1_upgrades_to_tp2(self):
        signal = _make_signal()
        signal.update_price(101.0, T0 + timedelta(minutes=1))

        assert signal.update_price(102.5, T0 + timedelta(minutes=2)) is True
        assert signal.status == SignalStatus.TP2_HIT

    def test_tp2_upgrades_to_tp3(self):
        signal = _make_signal()
        signal.update_price(103.0, T0 + timedelta(minutes=1))

        assert signal.update_price(104.0, T0 + timedelta(minutes=2)) is True
        assert signal.status == SignalStatus.TP3_HIT

    def test_tp1_gap_to_tp3(self):
        signal = _make_signal()
        signal.update_price(101.0, T0 + timedelta(minutes=1))

        signal.update_price(120.0, T0 + timedelta(minutes=2))
        assert signal.status == SignalStatus.TP3_HIT

    def test_upgrade_restamps_hit_time(self):
        signal = _make_signal()
        signal.update_price(101.0, T0 + timedelta(minutes=1))
        signal.update_price(103.0, T0 + timedelta(minutes=7))

        assert signal.hit_time == T0 + timedelta(minutes=7)

    def test_tp_never_regresses(self):
        signal = _make_signal()
        signal.update_price(103.0, T0 + timedelta(minutes=1))

        assert signal.update_price(101.0, T0 + timedelta(minutes=2)) is False
        assert signal.status == SignalStatus.TP2_HIT
        assert signal.current_price == 101.0

    def test_tp_hit_ignores_stop(self):
        signal = _make_signal()
        signal.update_price(101.0, T0 + timedelta(minutes=1))

        assert signal.update_price(95.0, T0 + timedelta(minutes=2)) is False
        assert signal.status == SignalStatus.TP1_HIT

    def test_sl_hit_is_absorbing(self):
        signal = _make_signal()
        signal.update_price(97.0, T0 + timedelta(minutes=1))

        for price in (99.0, 101.0, 103.0, 150.0, 50.0):
            assert signal.update_price(price, T0 + timedelta(minutes=2)) is False
            assert signal.status == SignalStatus.SL_HIT
        assert signal.hit_time == T0 + timedelta(minutes=1)

    def test_non_decreasing_prices_never_regress(self):
        signal = _make_signal()
        prices = [99.0, 100.0, 101.0, 101.0, 102.0, 102.5, 103.0, 104.0, 105.0]
        previous_rank = signal.status.rank

        for i, price in enumerate(prices):
            signal.update_price(price, T0 + timedelta(minutes=i))
            assert signal.status.rank >= previous_rank
            previous_rank = signal.status.rank

        assert signal.status == SignalStatus.TP3_HIT


class TestProfitPercent:
    def test_target_profit(self):
        signal = _make_signal()
        signal.update_price(103.0, T0)
        # TP2 = 102.5
        assert signal.profit_percent == pytest.approx(2.5)

    def test_stop_loss(self):
        signal = _make_signal()
        signal.update_price(97.0, T0)
        assert signal.profit_percent == pytest.approx(-2.0)


class TestExpiry:
    """Tests for retention windows."""

    ACTIVE_TTL = timedelta(hours=24)
    HIT_RETENTION = timedelta(minutes=30)

    def test_active_expiry(self):
        signal = _make_signal()

        assert not signal.is_expired(
            T0 + timedelta(hours=23, minutes=59), self.ACTIVE_TTL, self.HIT_RETENTION
        )
        assert signal.is_expired(
            T0 + timedelta(hours=24, minutes=1), self.ACTIVE_TTL, self.HIT_RETENTION
        )

    def test_hit_expiry_counts_from_hit_time(self):
        signal = _make_signal()
        hit_at = T0 + timedelta(hours=2)
        signal.update_price(97.0, hit_at)

        assert not signal.is_expired(
            hit_at + timedelta(minutes=29), self.ACTIVE_TTL, self.HIT_RETENTION
        )
        assert signal.is_expired(
            hit_at + timedelta(minutes=31), self.ACTIVE_TTL, self.HIT_RETENTION
        )

    def test_hit_without_timestamp_is_expired(self):
        signal = _make_signal(status=SignalStatus.CLOSED)
        assert signal.is_expired(T0, self.ACTIVE_TTL, self.HIT_RETENTION)
