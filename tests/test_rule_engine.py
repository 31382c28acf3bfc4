import pytest

from signalwatch.domain.models.extract_rule import ExtractRule, RuleKind, default_rules
from signalwatch.infrastructure.rules.rule_engine import RuleEngine, normalize_for_comparison

from conftest import keyword_rule


@pytest.fixture
def engine(logger):
    return RuleEngine(logger, fuzzy_threshold=1)


def regex_rule(pattern, rule_id="rx", order=0, enabled=True):
    return ExtractRule(id=rule_id, name=rule_id.upper(), pattern=pattern, kind=RuleKind.REGEX,
                       enabled=enabled, order=order)


def test_exact_keyword_match(engine):
    matches = engine.extract("SELL 1234", [keyword_rule("SELL")])

    assert len(matches) == 1
    assert matches[0].matches == ["SELL"]


def test_match_is_reported_in_original_form(engine):
    matches = engine.extract("now  sell   order", [keyword_rule("SELL ORDER")])

    assert matches[0].matches == ["sell   order"]


def test_words_in_order_match(engine):
    matches = engine.extract("BUY XXX ORDER", [keyword_rule("BUY ORDER")])

    assert len(matches) == 1
    assert matches[0].matches == ["BUY ORDER"]


def test_words_out_of_order_do_not_match(engine):
    assert engine.extract("ORDER XXX BUY", [keyword_rule("BUY ORDER", order=0)]) == []


def test_fuzzy_match_at_distance_one(engine):
    matches = engine.extract("SEIL", [keyword_rule("SELL")])

    assert matches and matches[0].matches == ["SEIL"]


def test_no_fuzzy_match_at_distance_two(engine):
    assert engine.extract("SFIL", [keyword_rule("SELL")]) == []


def test_fuzzy_disabled_with_zero_threshold(logger):
    assert RuleEngine(logger, fuzzy_threshold=0).extract("SEIL", [keyword_rule("SELL")]) == []


def test_regex_is_case_insensitive_and_collects_all(engine):
    matches = engine.extract("id a12 and A34", [regex_rule(r"a\d+")])

    assert matches[0].matches == ["a12", "A34"]


def test_invalid_regex_is_skipped_and_logged_once(engine, logger):
    rules = [regex_rule("(unclosed", rule_id="bad", order=0), keyword_rule("BUY", order=1)]

    first = engine.extract("BUY NOW", rules)
    engine.extract("BUY NOW", rules)

    assert [m.rule_id for m in first] == ["buy"]
    invalid = [m for m in logger.messages("WARNING") if "Invalid regex" in m]
    assert len(invalid) == 1


def test_rules_run_in_order_and_disabled_are_skipped(engine):
    rules = [
        keyword_rule("BUY", rule_id="late", order=5),
        keyword_rule("SELL", rule_id="early", order=1),
        ExtractRule(id="off", name="Off", pattern="SELL", kind=RuleKind.KEYWORD, enabled=False, order=0),
    ]

    matches = engine.extract("SELL then BUY", rules)

    assert [m.rule_id for m in matches] == ["early", "late"]


def test_empty_text_has_no_matches(engine):
    assert engine.extract("   ", default_rules()) == []


def test_default_rules_recognize_sell_only(engine):
    matches = engine.extract("SELL", default_rules())

    assert [m.rule_name for m in matches] == ["Sell"]


def test_normalization_keeps_index_map():
    normalized = normalize_for_comparison("  ｓell \t it ")

    assert normalized.text == "SELL IT"
    assert normalized.original_span(0, 4) == "ｓell"
