import pytest

from fxstudio.render.progress import ProgressParser, parse_percent


@pytest.mark.parametrize(
    "line,expected",
    [
        ("Rendered 12/48 (25%)", 25),
        ("Rendering frames 7 %", 7),
        ("Encoded 100%", 100),
        ("Bundling 10% ... rendering 40%", 40),
        ("no percentage here", None),
        ("version 1.5%", None),
        ("weird 250%", None),
        ("", None),
    ],
)
def test_parse_percent(line, expected):
    assert parse_percent(line) == expected


def test_parser_reports_only_increases():
    parser = ProgressParser()
    fed = [parser.feed(line) for line in ["10%", "5%", "10%", "hello", "30%", "100%", "100%"]]
    assert fed == [0.1, None, None, None, 0.3, 1.0, None]
    assert parser.last_percent == 100
