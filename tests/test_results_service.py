"""Tests for per-question results aggregation."""
import uuid
from types import SimpleNamespace

import pytest

from formflow.services import results_service


def _question(qtype, order_index=0, options=None, title="Q"):
    return SimpleNamespace(
        id=uuid.uuid4(),
        type=qtype,
        title=title,
        options=options,
        order_index=order_index,
    )


def test_single_choice_counts_and_percentages():
    q = _question("single", options=["Red", "Blue", "Green"])
    key = str(q.id)
    maps = [{key: "Red"}, {key: "Red"}, {key: "Blue"}, {key: "Red"}, {}]

    summary = results_service.summarize_question(q, maps)

    assert summary.total_responses == 4
    assert summary.counts == {"Red": 3, "Blue": 1, "Green": 0}
    assert summary.percentages == {"Red": 75.0, "Blue": 25.0, "Green": 0.0}
    assert summary.average is None


def test_multiple_choice_percentages_use_answering_respondents():
    q = _question("multiple", options=["A", "B", "C"])
    key = str(q.id)
    maps = [{key: ["A", "B"]}, {key: ["A"]}, {key: ["C", "C"]}]

    summary = results_service.summarize_question(q, maps)

    assert summary.total_responses == 3
    assert summary.counts == {"A": 2, "B": 1, "C": 1}
    assert summary.percentages["A"] == pytest.approx(200 / 3)
    assert summary.percentages["C"] == 1 / 3 * 100


def test_rating_counts_every_score_and_average():
    q = _question("rating")
    key = str(q.id)
    maps = [{key: 5}, {key: 4}, {key: 4}, {key: 2}]

    summary = results_service.summarize_question(q, maps)

    assert summary.counts == {"1": 0, "2": 1, "3": 0, "4": 2, "5": 1}
    assert summary.average == 3.75


def test_text_answers_are_listed_in_order():
    q = _question("short_text")
    key = str(q.id)
    maps = [{key: "first"}, {key: ""}, {key: "second"}]

    summary = results_service.summarize_question(q, maps)

    assert summary.total_responses == 2
    assert summary.text_answers == ["first", "second"]
    assert summary.counts == {}


def test_no_responses_yields_zero_percentages():
    q = _question("single", options=["Yes", "No"])
    summary = results_service.summarize_question(q, [])
    assert summary.total_responses == 0
    assert summary.percentages == {"Yes": 0.0, "No": 0.0}


def test_values_outside_options_are_still_counted():
    q = _question("single", options=["Yes"])
    key = str(q.id)
    summary = results_service.summarize_question(q, [{key: "Retired option"}])
    assert summary.counts == {"Yes": 0, "Retired option": 1}


def test_summarize_follows_form_order():
    second = _question("short_text", order_index=1, title="Second")
    first = _question("rating", order_index=0, title="First")
    summaries = results_service.summarize([second, first], [])
    assert [s.title for s in summaries] == ["First", "Second"]
