"""Tests for standard/alternate line matching."""

from builders import make_bookmaker
from ev_odds.core.lines import LineComparison, best_line, find_matching_lines, points_match

HOME = "Boston Celtics"
AWAY = "Brooklyn Nets"


def books():
    return [
        make_bookmaker("draftkings", {
            "spreads": [(HOME, -110, -5.5), (AWAY, -110, 5.5)],
            "alternate_spreads": [(HOME, +105, -4.5), (AWAY, -130, 4.5), (HOME, +130, -6.5)],
        }),
        make_bookmaker("fanduel", {
            "spreads": [(HOME, -108, -4.5), (AWAY, -112, 4.5)],
        }),
        make_bookmaker("betmgm", {
            "spreads": [(HOME, -115, -6.0), (AWAY, -105, 6.0)],
        }),
    ]


class TestPointsMatch:

    def test_tolerance(self):
        assert points_match(-3.5, -3.5)
        assert points_match(220.5, 220.505)
        assert not points_match(-3.5, -3.0)
        assert not points_match(None, -3.5)


class TestFindMatchingLines:
    """Standard market first, alternate market second."""

    def test_prefers_standard_then_alternate(self):
        lines = {line.bookmaker: line for line in find_matching_lines(-4.5, "spreads", books(), selection=HOME)}

        assert lines["fanduel"].price == -108
        assert not lines["fanduel"].is_alternate

        assert lines["draftkings"].price == 105
        assert lines["draftkings"].is_alternate

        assert not lines["betmgm"].available

    def test_selection_filter(self):
        lines = find_matching_lines(4.5, "spreads", books(), selection=AWAY)
        prices = {line.bookmaker: line.price for line in lines}
        assert prices == {"draftkings": -130, "fanduel": -112, "betmgm": None}

    def test_best_line(self):
        best = best_line(find_matching_lines(-4.5, "spreads", books(), selection=HOME))
        assert best is not None
        assert best.bookmaker == "draftkings"
        assert best.price == 105

    def test_best_line_none_available(self):
        assert best_line(find_matching_lines(-20.5, "spreads", books(), selection=HOME)) is None

    def test_comparison(self):
        comparison = LineComparison.build("evt-1", "spreads", -6.5, books(), selection=HOME)
        assert [line.bookmaker for line in comparison.lines] == ["draftkings", "fanduel", "betmgm"]
        assert comparison.best.bookmaker == "draftkings"
        assert comparison.best.is_alternate
