from domain.models import GeoCoordinate, MatchResult
from services.geo_links import format_geo_link, splice_geo_link


def test_format_geo_link():
    assert format_geo_link(GeoCoordinate(48.5, -2.25)) == "[](geo:48.5,-2.25)"


def test_splice_replaces_exact_span_and_places_cursor():
    line = "meet at 48.5,2.25 tomorrow"
    match = MatchResult(
        coordinate=GeoCoordinate(48.5, 2.25),
        source_index=8,
        match_length=len("48.5,2.25"),
        rule_name="Generic Lat,Lng",
    )
    new_line, cursor = splice_geo_link(line, match)
    assert new_line == "meet at [](geo:48.5,2.25) tomorrow"
    assert cursor == 9
    assert new_line[cursor - 1] == "["
