"""Play-rate Parsing — verifies Community Dragon statistics parsing."""

from bootcamp_tracker.core.playrates import champion_ids, parse_patch, parse_role_rates
from bootcamp_tracker.core.role_identification import RoleRates

SCRIPT = (
    'var x={"TOP":{"1":0.5,"2":0.01},'
    '"JUNGLE":{"2":0.9},'
    '"MIDDLE":{ "1" : 0.25 },'
    '"BOTTOM":{},'
    '"SUPPORT":{"3":0.123456789}};'
)


def test_champion_ids_skip_placeholder():
    summary = [{"id": -1}, {"id": 1}, {"id": "2"}]
    assert champion_ids(summary) == [1, 2]


def test_parse_role_rates_converts_to_percentages():
    rates = parse_role_rates(SCRIPT, [1, 2, 3])
    assert rates[1] == RoleRates(top=50.0, jungle=0.0, mid=25.0, adc=0.0, support=0.0)
    assert rates[2].jungle == 90.0
    assert rates[2].top == 1.0
    assert rates[3].support == 12.34568


def test_unlisted_champion_gets_zero_rates():
    rates = parse_role_rates(SCRIPT, [99])
    assert rates[99] == RoleRates()


def test_missing_role_block_yields_zero():
    rates = parse_role_rates('{"TOP":{"1":0.5}}', [1])
    assert rates[1].top == 50.0
    assert rates[1].support == 0.0


def test_parse_patch():
    assert parse_patch("14.3.562.1234") == "14.3"
    assert parse_patch("14") == "14"
