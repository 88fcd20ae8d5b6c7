"""Unit tests for price display helpers."""

from src.ug_common.cents import cents_to_display, cents_to_whole_display


class TestCentsToDisplay:
    def test_positive(self) -> None:
        assert cents_to_display(22500) == "$225.00"

    def test_zero(self) -> None:
        assert cents_to_display(0) == "$0.00"

    def test_thousands_separator(self) -> None:
        assert cents_to_display(123456) == "$1,234.56"

    def test_negative(self) -> None:
        assert cents_to_display(-1200) == "-$12.00"


class TestCentsToWholeDisplay:
    def test_exact_dollars(self) -> None:
        assert cents_to_whole_display(50000) == "$500"

    def test_rounds_half_up(self) -> None:
        assert cents_to_whole_display(7550) == "$76"

    def test_rounds_down(self) -> None:
        assert cents_to_whole_display(7549) == "$75"

    def test_no_thousands_separator(self) -> None:
        assert cents_to_whole_display(150000) == "$1500"
