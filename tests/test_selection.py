"""Tests for resolving editor selections against stored bodies."""

import string

import pytest
from hypothesis import assume, given, settings as hypothesis_settings, strategies as st

from advisorflow.exceptions import SelectionInvalidError
from advisorflow.schemas.generation import SelectionSpec
from advisorflow.services.selection import render_text, replace_span, resolve_selection

BODY = (
    "<h2>Planning Ahead</h2>\n"
    "<p>Estate planning protects your family &amp; legacy for decades.</p>\n"
    "<p>Diversification reduces <strong>concentration risk</strong> over time.</p>"
)
MIN = 5


def _resolve(body=BODY, **spec):
    return resolve_selection(body, SelectionSpec(**spec), MIN)


class TestRenderText:

    def test_tags_removed_and_entities_decoded(self):
        text = render_text(BODY)
        assert "<" not in text
        assert "family & legacy" in text
        assert "reduces concentration risk over" in text


class TestResolveByText:

    def test_unique_text_maps_to_body_range(self):
        span = _resolve(text="protects your family")
        assert BODY[span.body_start:span.body_end] == "protects your family"
        assert span.text == "protects your family"

    def test_entity_maps_to_its_full_source(self):
        span = _resolve(text="family & legacy")
        assert BODY[span.body_start:span.body_end] == "family &amp; legacy"

    def test_surrounding_whitespace_is_trimmed(self):
        span = _resolve(text="  protects your family \n")
        assert BODY[span.body_start:span.body_end] == "protects your family"

    def test_too_short_rejected(self):
        with pytest.raises(SelectionInvalidError):
            _resolve(text="Esta")

    def test_whitespace_padding_does_not_count(self):
        with pytest.raises(SelectionInvalidError):
            _resolve(text="   Est   ")

    def test_missing_text_rejected(self):
        with pytest.raises(SelectionInvalidError):
            _resolve(text="municipal bonds")

    def test_partial_formatting_run_rejected(self):
        with pytest.raises(SelectionInvalidError) as exc_info:
            _resolve(text="reduces concentration")
        assert "formatting" in exc_info.value.message

    def test_balanced_inline_markup_is_enclosed(self):
        span = _resolve(text="reduces concentration risk over time")
        assert BODY[span.body_start:span.body_end] == (
            "reduces <strong>concentration risk</strong> over time"
        )
        result = replace_span(BODY, span, "lowers single-stock exposure")
        assert "<p>Diversification lowers single-stock exposure.</p>" in result
        assert result.count("<strong>") == result.count("</strong>") == 0

    def test_selection_ending_at_run_end_takes_closing_tag(self):
        span = _resolve(text="reduces concentration risk")
        assert BODY[span.body_start:span.body_end] == "reduces <strong>concentration risk</strong>"

    def test_selection_starting_at_run_start_takes_opening_tag(self):
        span = _resolve(text="concentration risk over")
        assert BODY[span.body_start:span.body_end] == "<strong>concentration risk</strong> over"

    def test_nested_runs_are_enclosed(self):
        body = "<p>Keep <strong><em>three months</em></strong> of expenses.</p>"
        span = _resolve(body, text="three months of")
        assert body[span.body_start:span.body_end] == "<strong><em>three months</em></strong> of"

    def test_unbalanced_end_tag_rejected(self):
        body = "<p>Keep <em>three months</em> of <em>cash on hand</em> always.</p>"
        with pytest.raises(SelectionInvalidError):
            _resolve(body, text="months of cash")

    def test_line_break_inside_block_is_allowed(self):
        body = "<p>First line here<br/>second line here</p>"
        span = _resolve(body, text="heresecond")
        assert body[span.body_start:span.body_end] == "here<br/>second"

    def test_crossing_blocks_rejected(self):
        with pytest.raises(SelectionInvalidError):
            _resolve(text="Ahead\nEstate")

    def test_crossing_list_items_rejected(self):
        body = "<ul><li>Roth conversions</li><li>Backdoor contributions</li></ul>"
        with pytest.raises(SelectionInvalidError):
            _resolve(body, text="conversionsBackdoor")

    def test_quoted_angle_bracket_in_attribute(self):
        body = '<p><a title="a > b" href="#">Estate planning basics</a> for families.</p>'
        assert render_text(body) == "Estate planning basics for families."
        span = _resolve(body, text="planning basics")
        assert body[span.body_start:span.body_end] == "planning basics"

    def test_comment_is_not_text(self):
        body = "<p>Estate <!-- a > b --> planning matters.</p>"
        assert render_text(body) == "Estate  planning matters."

    def test_ambiguous_text_rejected(self):
        body = "<p>Risk tolerance matters. Risk tolerance changes.</p>"
        with pytest.raises(SelectionInvalidError) as exc_info:
            _resolve(body, text="Risk tolerance")
        assert "ambiguous" in exc_info.value.message

    def test_occurrence_disambiguates(self):
        body = "<p>Risk tolerance matters. Risk tolerance changes.</p>"
        span = _resolve(body, text="Risk tolerance", occurrence=1)
        assert span.body_start == body.rindex("Risk tolerance")

    def test_occurrence_out_of_range(self):
        body = "<p>Risk tolerance matters. Risk tolerance changes.</p>"
        with pytest.raises(SelectionInvalidError):
            _resolve(body, text="Risk tolerance", occurrence=2)


class TestResolveByOffsets:

    def test_offsets_map_to_body_range(self):
        text = render_text(BODY)
        start = text.index("Estate planning")
        span = _resolve(start=start, end=start + len("Estate planning"))
        assert BODY[span.body_start:span.body_end] == "Estate planning"

    def test_offsets_must_match_given_text(self):
        text = render_text(BODY)
        start = text.index("Estate planning")
        with pytest.raises(SelectionInvalidError):
            _resolve(text="Estate planners", start=start, end=start + 15)

    def test_out_of_bounds(self):
        with pytest.raises(SelectionInvalidError):
            _resolve(start=0, end=10_000)

    def test_empty_range(self):
        with pytest.raises(SelectionInvalidError):
            _resolve(start=7, end=7)

    def test_spec_needs_text_or_offsets(self):
        with pytest.raises(ValueError):
            SelectionSpec()
        with pytest.raises(ValueError):
            SelectionSpec(start=3)


class TestReplaceSpan:

    def test_only_the_span_changes(self):
        span = _resolve(text="protects your family")
        result = replace_span(BODY, span, "shields your heirs")
        assert result == BODY.replace("protects your family", "shields your heirs")


_PLAIN = string.ascii_letters + "      .,"


@hypothesis_settings(max_examples=150)
@given(text=st.text(alphabet=_PLAIN, min_size=12, max_size=160), data=st.data())
def test_text_selection_replaces_exactly_its_range(text, data):
    i = data.draw(st.integers(min_value=0, max_value=len(text) - MIN))
    j = data.draw(st.integers(min_value=i + MIN, max_value=len(text)))
    needle = text[i:j]
    assume(needle.strip() == needle)
    assume(text.find(needle) == i and text.find(needle, i + 1) == -1)

    body = f"<p>{text}</p>"
    span = resolve_selection(body, SelectionSpec(text=needle), MIN)
    assert (span.body_start, span.body_end) == (i + 3, j + 3)

    result = replace_span(body, span, "REPLACED")
    assert result[:i + 3] == body[:i + 3]
    assert result[i + 3 + len("REPLACED"):] == body[j + 3:]


@given(text=st.text(alphabet=_PLAIN, min_size=12, max_size=160), data=st.data())
def test_offset_selection_round_trips(text, data):
    i = data.draw(st.integers(min_value=0, max_value=len(text) - MIN))
    j = data.draw(st.integers(min_value=i + MIN, max_value=len(text)))
    assume(len(text[i:j].strip()) >= MIN)

    body = f"<h3>Title</h3><p>{text}</p>"
    offset = len("Title")
    span = resolve_selection(body, SelectionSpec(start=i + offset, end=j + offset), MIN)
    assert body[span.body_start:span.body_end] == text[i:j]
