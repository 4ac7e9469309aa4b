"""Tests for odds conversion, EV and vig math."""

import pytest

from ev_odds.core.odds_math import (
    american_to_decimal,
    american_to_prob,
    bet_expected_value,
    closing_line_value,
    decimal_to_american,
    decimal_to_prob,
    expected_value_pct,
    fair_odds,
    get_overround,
    get_vig_pct,
    margin_pct,
    no_vig_multi_way,
    no_vig_two_way,
    prob_to_american,
    prob_to_decimal,
    round_to_standard_american,
)


class TestAmericanOdds:
    """Test American odds conversions."""

    def test_favorite_odds(self):
        # -110 implies ~52.38%
        assert american_to_prob(-110) == pytest.approx(0.5238, abs=0.001)
        assert american_to_prob(-200) == pytest.approx(0.6667, abs=0.001)

    def test_underdog_odds(self):
        assert american_to_prob(+150) == pytest.approx(0.4)
        assert american_to_prob(+120) == pytest.approx(0.4545, abs=0.0001)

    def test_even_odds(self):
        assert american_to_prob(+100) == pytest.approx(0.5)
        assert american_to_prob(-100) == pytest.approx(0.5)

    def test_zero_is_not_a_price(self):
        with pytest.raises(ValueError):
            american_to_prob(0)
        with pytest.raises(ValueError):
            american_to_decimal(0)

    def test_probability_in_unit_interval(self):
        for odds in (-10000, -500, -110, -100, 100, 150, 1000, 25000):
            assert 0 < american_to_prob(odds) < 1

    def test_underdog_probability_falls_as_price_rises(self):
        prices = [100, 120, 150, 200, 500]
        probs = [american_to_prob(p) for p in prices]
        assert probs == sorted(probs, reverse=True)

    def test_favorites_beat_underdogs(self):
        assert american_to_prob(-300) > american_to_prob(-150) > american_to_prob(+150)

    def test_prob_to_american(self):
        assert prob_to_american(0.6) == pytest.approx(-150)
        assert prob_to_american(0.4) == pytest.approx(150)

    def test_roundtrip(self):
        for prob in [0.1, 0.3, 0.45, 0.5, 0.6, 0.7, 0.95]:
            assert american_to_prob(prob_to_american(prob)) == pytest.approx(prob, abs=1e-9)

    def test_to_decimal(self):
        assert american_to_decimal(+150) == pytest.approx(2.5)
        assert american_to_decimal(-110) == pytest.approx(1.9091, abs=0.0001)

    def test_fair_odds_is_whole_number(self):
        assert fair_odds(0.6) == -150
        assert fair_odds(0.25) == 300


class TestDecimalOdds:
    """Test decimal odds conversions."""

    def test_decimal_to_prob(self):
        assert decimal_to_prob(2.00) == pytest.approx(0.5)
        assert decimal_to_prob(1.50) == pytest.approx(0.6667, abs=0.001)

    def test_prob_to_decimal(self):
        assert prob_to_decimal(0.5) == pytest.approx(2.0)

    def test_decimal_to_american(self):
        assert decimal_to_american(2.5) == pytest.approx(150)
        assert decimal_to_american(1.5) == pytest.approx(-200)

    def test_invalid_decimal(self):
        with pytest.raises(ValueError):
            decimal_to_prob(0.0)
        with pytest.raises(ValueError):
            decimal_to_american(1.0)


class TestQuantization:
    """Raw averages snap onto quotable American prices."""

    @pytest.mark.parametrize("raw, expected", [
        (-112.4, -110),
        (-113.0, -115),
        (147.6, 150),
        (-107.49, -105),
        (-114.81, -115),
        (100.0, 100),
        (-100.0, -100),
    ])
    def test_multiples_of_five(self, raw, expected):
        assert round_to_standard_american(raw) == expected

    @pytest.mark.parametrize("raw, expected", [
        (42.0, 100),
        (0.0, 100),
        (99.9, 100),
        (-3.5, -110),
        (-99.9, -110),
    ])
    def test_inside_hundred_snaps(self, raw, expected):
        assert round_to_standard_american(raw) == expected

    def test_always_legal(self):
        for raw in range(-400, 401, 7):
            price = round_to_standard_american(float(raw))
            assert abs(price) >= 100
            assert price % 5 == 0


class TestExpectedValue:
    """EV against a reference price."""

    def test_plus_150_against_plus_120(self):
        # 0.4545 * 2.5 - 1
        assert expected_value_pct(+150, +120) == pytest.approx(13.636, abs=0.01)

    def test_same_price_is_zero(self):
        # Offered equal to reference: p * (1/p) - 1 == 0
        assert expected_value_pct(-110, -110) == pytest.approx(0.0, abs=1e-9)
        assert expected_value_pct(+240, +240) == pytest.approx(0.0, abs=1e-9)

    def test_worse_price_is_negative(self):
        assert expected_value_pct(-120, -110) < 0

    def test_bet_expected_value(self):
        assert bet_expected_value(100, +150, 0.5) == pytest.approx(25.0)
        assert bet_expected_value(110, -110, 0.5) == pytest.approx(-5.0)

    def test_closing_line_value_positive_when_beating_close(self):
        assert closing_line_value(+150, +120) == pytest.approx(13.636, abs=0.01)
        assert closing_line_value(+120, +150) < 0


class TestVigRemoval:
    """Test vig removal mathematics."""

    def test_no_vig_two_way_with_vig(self):
        p_a, p_b = no_vig_two_way(american_to_prob(-110), american_to_prob(-110))
        assert p_a == pytest.approx(0.5)
        assert p_a + p_b == pytest.approx(1.0)

    def test_no_vig_asymmetric(self):
        p_fav, p_dog = no_vig_two_way(american_to_prob(-200), american_to_prob(+150))
        assert p_fav + p_dog == pytest.approx(1.0)
        assert p_fav > 0.5 > p_dog

    def test_no_vig_multi_way(self):
        probs, overround = no_vig_multi_way([0.5, 0.3, 0.3])
        assert overround == pytest.approx(1.1)
        assert sum(probs) == pytest.approx(1.0)

    def test_no_vig_multi_way_empty(self):
        with pytest.raises(ValueError):
            no_vig_multi_way([])

    def test_overround_and_vig(self):
        overround = get_overround([american_to_prob(-110)] * 2)
        assert overround == pytest.approx(1.0476, abs=0.001)
        assert get_vig_pct(overround) == pytest.approx(4.76, abs=0.01)

    def test_margin_pct(self):
        assert margin_pct([-110, -110]) == pytest.approx(4.76, abs=0.01)
