import pytest

from mise.normalize import (
    MAX_COUNT,
    haccp_status,
    is_http_url,
    normalize_allergens,
    normalize_ingredient,
    parse_duration,
    parse_ingredient_line,
    parse_quantity,
    parse_yield,
)


@pytest.mark.parametrize(
    "line, expected",
    [
        ("100 g Mehl", ("Mehl", 100.0, "g")),
        ("1,5 l Milch", ("Milch", 1.5, "l")),
        ("0.5 kg Zucker", ("Zucker", 0.5, "kg")),
        ("1/2 TL Salz", ("Salz", 0.5, "TL")),
        ("½ TL Salz", ("Salz", 0.5, "TL")),
        ("1 ½ Tassen Zucker", ("Zucker", 1.5, "Tassen")),
        ("1 1/2 cups flour", ("flour", 1.5, "cups")),
        ("2-3 EL Öl", ("Öl", 2.0, "EL")),
        ("200 g. Butter", ("Butter", 200.0, "g")),
        ("2 Eier", ("Eier", 2.0, "Stück")),
        ("1 Prise Salz", ("Salz", 1.0, "Prise")),
        ("Salz", ("Salz", 1.0, "Stück")),
        ("0 g Butter", ("Butter", 1.0, "g")),
        ("3 große Eier", ("große Eier", 3.0, "Stück")),
    ],
)
def test_parse_ingredient_line(line, expected):
    assert tuple(parse_ingredient_line(line)) == expected


def test_parse_ingredient_line_collapses_whitespace():
    assert tuple(parse_ingredient_line("  250   g   Topfen ")) == ("Topfen", 250.0, "g")


def test_parse_quantity_rejects_zero_denominator():
    assert parse_quantity("1/0") is None
    assert parse_quantity("") is None


@pytest.mark.parametrize(
    "value, minutes",
    [
        ("PT1H30M", 90),
        ("PT45M", 45),
        ("P0DT2H", 120),
        ("PT90S", 2),
        ("pt20m", 20),
        ("30 Minuten", 30),
        (25, 25),
        ("", 0),
        (None, 0),
        ("schnell", 0),
    ],
)
def test_parse_duration(value, minutes):
    assert parse_duration(value) == minutes


@pytest.mark.parametrize(
    "value, portions",
    [
        ("4 Portionen", 4),
        (["6", "6 servings"], 6),
        (8, 8),
        (None, 4),
        ("viele", 4),
        ([], 4),
        (0, 4),
    ],
)
def test_parse_yield(value, portions):
    assert parse_yield(value) == portions


def test_parse_yield_custom_default():
    assert parse_yield(None, default=2) == 2


@pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
def test_non_finite_numbers_are_missing(value):
    assert parse_duration(value) == 0
    assert parse_yield(value) == 4


def test_huge_numbers_are_capped():
    assert parse_yield("99999999999999999999 Portionen") == MAX_COUNT
    assert parse_yield(1e30) == MAX_COUNT
    assert parse_duration("P" + "9" * 400 + "D") == 0
    assert parse_duration("PT99999H") == MAX_COUNT
    assert parse_duration("9" * 5000 + " Minuten") == MAX_COUNT
    assert parse_quantity("9" * 400) is None


def test_is_http_url():
    assert is_http_url("https://example.com/r")
    assert not is_http_url("javascript:alert(1)")
    assert not is_http_url("//cdn.example.com/x.jpg")
    assert not is_http_url(None)


def test_normalize_ingredient():
    assert normalize_ingredient("Tomatoes") == "tomato"
    assert normalize_ingredient("  Eggs ") == "egg"
    assert normalize_ingredient("Erdäpfel") == "kartoffel"
    assert normalize_ingredient("Melanzani") == "eggplant"
    assert normalize_ingredient("Mehl") == "mehl"
    assert normalize_ingredient("") == ""


def test_normalize_allergens():
    assert normalize_allergens(["g", "A", "a", "X", " c "]) == ["A", "C", "G"]
    assert normalize_allergens(None) == []


@pytest.mark.parametrize(
    "temperature, status",
    [
        (3.0, "OK"),
        (0.0, "OK"),
        (4.0, "OK"),
        (5.0, "WARNING"),
        (7.0, "WARNING"),
        (7.5, "CRITICAL"),
        (-2.0, "WARNING"),
        (-3.5, "CRITICAL"),
    ],
)
def test_haccp_status_fridge(temperature, status):
    assert haccp_status(temperature, 0, 4) == status


def test_haccp_status_freezer_and_margin():
    assert haccp_status(-10, -22, -18) == "CRITICAL"
    assert haccp_status(-17, -22, -18) == "WARNING"
    assert haccp_status(-10, -22, -18, critical_margin=10) == "WARNING"
