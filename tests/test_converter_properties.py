"""Property-based tests for HTML to Markdown conversion."""

from hypothesis import given
from hypothesis import strategies as st

from inosync.converter import clean_markdown, html_to_markdown

plain_text = st.text(
    alphabet=st.one_of(
        st.characters(whitelist_categories=("Lu", "Ll", "Nd")),
        st.sampled_from(" \n\t.,;:!?-'\"()"),
    ),
    max_size=300,
)

words = st.text(alphabet="abcdefghijklmnopqrstuvwxyz", min_size=1, max_size=12)


class TestConverterProperties:
    """Property-based tests for html_to_markdown."""

    @given(plain_text)
    def test_plain_text_round_trip_property(self, text):
        """
        Text without any markup converts to itself, modulo blank-line
        collapsing and trimming.
        """
        assert html_to_markdown(text) == clean_markdown(text)

    @given(st.lists(words, min_size=1, max_size=20))
    def test_ordered_list_numbering_property(self, entries):
        """Every item of an ordered list gets its 1-based position, in order."""
        html = "<ol>" + "".join(f"<li>{entry}</li>" for entry in entries) + "</ol>"

        lines = html_to_markdown(html).split("\n")

        assert lines == [f"{position}. {entry}" for position, entry in enumerate(entries, 1)]

    @given(st.lists(words, min_size=1, max_size=10))
    def test_unknown_wrappers_preserve_text_property(self, entries):
        """Unsupported elements never drop their text content."""
        html = "".join(f"<section><span>{entry}</span></section> " for entry in entries)

        assert html_to_markdown(html) == " ".join(entries)

    @given(st.text(max_size=300))
    def test_conversion_is_total_property(self, html):
        """Arbitrary input never raises and never has surrounding whitespace."""
        result = html_to_markdown(html)

        assert result == result.strip()
        assert "\n\n\n" not in result
