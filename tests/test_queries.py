"""
Test query building: escaping, typed parameters and the url_clicks queries.
"""

from datetime import datetime, timedelta, timezone

import pytest

from clicktrack_app.storage import queries
from clicktrack_app.storage.query import DateTime, Query, String, UInt, escape
from clicktrack_app.tracking.models import ClickEvent

CLICKED_AT = datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


def unescape(literal: str) -> str:
    """Read back an escaped literal body the way ClickHouse does"""
    out = []
    i = 0
    while i < len(literal):
        pair = literal[i:i + 2]
        if pair in ("\\\\", "''"):
            out.append(pair[0])
            i += 2
        else:
            out.append(literal[i])
            i += 1
    return "".join(out)


def make_event(**overrides) -> ClickEvent:
    fields = dict(
        id=1735787045123,
        short_url_id=42,
        tracking_id="00c8328e409c4831e4aba4f65ec3a0c1",
        short_uri="abc12",
        redirected_to_url="https://example.com/page",
        url_type="url1",
        clicked_at=CLICKED_AT,
        created_at=CLICKED_AT,
    )
    fields.update(overrides)
    return ClickEvent(**fields)


class TestEscape:

    def test_single_quote_is_doubled(self):
        assert escape("O'Reilly") == "O''Reilly"

    def test_backslash_is_doubled(self):
        assert escape("a\\b") == "a\\\\b"

    def test_backslash_before_quote(self):
        assert escape("\\'") == "\\\\''"

    @pytest.mark.parametrize("value", [
        "",
        "plain",
        "it's",
        "'; DROP TABLE url_clicks; --",
        "C:\\path\\to\\file",
        "\\'\\'",
        "trailing backslash\\",
        "{braces} and 'quotes'",
        "unicode ünïcödé ✓",
    ])
    def test_round_trip(self, value):
        assert unescape(escape(value)) == value

    def test_no_unescaped_quote_survives(self):
        escaped = escape("a'b''c'''")
        assert escaped.replace("''", "").count("'") == 0


class TestTypedParameters:

    def test_string_renders_quoted(self):
        assert String("it's").render() == "'it''s'"

    def test_none_renders_null(self):
        assert String(None).render() == "NULL"
        assert UInt(None).render() == "NULL"

    def test_string_rejects_non_str(self):
        with pytest.raises(TypeError):
            String(42)

    def test_uint_renders_bare(self):
        assert UInt(42).render() == "42"

    @pytest.mark.parametrize("value", [True, "42", 4.2])
    def test_uint_rejects_non_int(self, value):
        with pytest.raises(TypeError):
            UInt(value)

    def test_uint_rejects_negative(self):
        with pytest.raises(ValueError):
            UInt(-1)

    def test_datetime_renders_utc(self):
        local = datetime(2025, 1, 2, 5, 4, 5, tzinfo=timezone(timedelta(hours=2)))
        assert DateTime(local).render() == "'2025-01-02 03:04:05'"

    def test_naive_datetime_is_taken_as_utc(self):
        assert DateTime(datetime(2025, 1, 2, 3, 4, 5)).render() == "'2025-01-02 03:04:05'"

    def test_datetime_rejects_strings(self):
        with pytest.raises(TypeError):
            DateTime("2025-01-02 03:04:05")


class TestQuery:

    def test_render(self):
        query = Query("q", "SELECT * FROM t WHERE id = {id} AND name = {name}",
                      id=UInt(7), name=String("x"))
        assert query.render() == "SELECT * FROM t WHERE id = 7 AND name = 'x'"
        assert str(query) == query.render()

    def test_raw_values_are_refused(self):
        with pytest.raises(TypeError):
            Query("q", "SELECT {name}", name="raw string")

    def test_unbound_placeholder(self):
        with pytest.raises(ValueError):
            Query("q", "SELECT {missing}").render()

    def test_braces_in_values_are_not_reformatted(self):
        assert Query("q", "SELECT {v}", v=String("{v}")).render() == "SELECT '{v}'"


class TestInsertClick:

    def test_lists_every_column(self):
        text = queries.insert_click(make_event()).render()
        assert text.startswith(f"INSERT INTO url_clicks ({', '.join(queries.CLICK_COLUMNS)}) VALUES (")

    def test_values(self):
        text = queries.insert_click(make_event()).render()
        assert "VALUES (1735787045123, 42, '00c8328e409c4831e4aba4f65ec3a0c1', 'abc12', " in text
        assert "'https://example.com/page', 'url1', NULL, NULL, 'Unknown'" in text
        assert "'2025-01-02 03:04:05', '2025-01-02 03:04:05')" in text

    def test_missing_utm_is_null(self):
        text = queries.insert_click(make_event()).render()
        # referrer, referrer_domain and the five utm columns, then clicked_at
        assert "NULL, NULL, NULL, NULL, NULL, NULL, NULL, '2025-01-02 03:04:05'" in text

    def test_utm_values(self):
        event = make_event(utm_source="newsletter", utm_medium="email", utm_campaign="spring")
        text = queries.insert_click(event).render()
        assert "'newsletter', 'email', 'spring', NULL, NULL, '2025-01-02 03:04:05'" in text

    def test_hostile_strings_are_escaped(self):
        event = make_event(
            user_agent="x'); DROP TABLE url_clicks; --",
            referrer="https://evil.example/\\'",
        )
        text = queries.insert_click(event).render()
        assert "'x''); DROP TABLE url_clicks; --'" in text
        assert "'https://evil.example/\\\\'''" in text

    def test_user_id(self):
        text = queries.insert_click(make_event(user_id=9)).render()
        assert "'url1', 9, NULL" in text


class TestReadQueries:

    READ_QUERIES = [
        queries.total_clicks,
        queries.clicks_by_url_type,
        queries.clicks_over_time,
        queries.geographic_stats,
        queries.device_stats,
        queries.browser_stats,
        queries.referrer_stats,
        queries.hourly_pattern,
        queries.utm_campaign_stats,
        queries.utm_source_stats,
        queries.utm_medium_stats,
        queries.recent_clicks,
    ]

    @pytest.mark.parametrize("build", READ_QUERIES)
    def test_scoped_to_short_url_and_json_each_row(self, build):
        text = build(42).render()
        assert "FROM url_clicks" in text
        assert "WHERE short_url_id = 42" in text
        assert text.strip().endswith("FORMAT JSONEachRow")

    def test_default_windows(self):
        assert "today() - 30" in queries.clicks_over_time(42).render()
        assert "today() - 7" in queries.hourly_pattern(42).render()

    def test_days_is_bound(self):
        assert "today() - 7" in queries.clicks_over_time(42, days=7).render()
        assert "today() - 90" in queries.hourly_pattern(42, days=90).render()

    def test_days_must_be_an_int(self):
        with pytest.raises(TypeError):
            queries.clicks_over_time(42, days="7; DROP TABLE url_clicks")

    def test_utm_campaign_groups_by_triple(self):
        text = queries.utm_campaign_stats(42).render()
        assert "GROUP BY utm_source, utm_medium, utm_campaign" in text
        assert "LIMIT 50" in text

    def test_recent_clicks_newest_first(self):
        text = queries.recent_clicks(42, limit=50).render()
        assert "ORDER BY clicked_at DESC, id DESC" in text
        assert "LIMIT 50" in text

    def test_create_table(self):
        text = queries.create_clicks_table().render()
        assert "CREATE TABLE IF NOT EXISTS url_clicks" in text
        assert "ENGINE = MergeTree()" in text
        assert "PARTITION BY toYYYYMM(clicked_at)" in text
        assert "ORDER BY (short_url_id, clicked_at, id)" in text

    def test_timestamps_are_utc_columns(self):
        text = queries.create_clicks_table().render()
        assert "clicked_at DateTime('UTC')," in text
        assert "created_at DateTime('UTC') DEFAULT now()" in text
