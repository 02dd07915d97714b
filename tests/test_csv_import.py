from __future__ import annotations

import pytest

from tunefetch.csv_import import (
    EXPECTED_HEADERS,
    find_column_index,
    normalize_header,
    parse_csv,
    validate_headers,
)
from tunefetch.errors import CsvHeaderError

FULL_HEADER = "Artist Name(s),Track Name,Album Name,Artist Genres,Album Release Date,BPM/Tempo"


def _assert_tally(result) -> None:
    assert result.total_count == result.success_count + result.error_count
    assert result.total_count == len(result.entries) + len(result.errors)


def test_parses_valid_rows() -> None:
    content = "\n".join(
        [
            FULL_HEADER,
            "The Beatles,Hey Jude,Abbey Road,rock,1968-08-26,140",
            "Queen,Bohemian Rhapsody,A Night At The Opera,rock,1975,145",
            "Led Zeppelin,Stairway To Heaven,Led Zeppelin IV,rock,1971,146",
        ]
    )
    result = parse_csv(content)

    assert (result.total_count, result.success_count, result.error_count) == (3, 3, 0)
    first = result.entries[0]
    assert first.row_number == 2
    assert first.metadata.artist_names == "The Beatles"
    assert first.metadata.track_name == "Hey Jude"
    assert first.metadata.album_name == "Abbey Road"
    assert first.metadata.bpm_tempo == "140"
    assert first.search_query == "The Beatles - Hey Jude"
    assert [e.row_number for e in result.entries] == [2, 3, 4]
    _assert_tally(result)


def test_three_valid_rows_and_one_missing_names() -> None:
    content = "\n".join(
        [
            FULL_HEADER,
            "The Beatles,Hey Jude,Abbey Road,rock,1968,140",
            ",,Nameless Album,pop,2001,100",
            "Queen,Bohemian Rhapsody,A Night At The Opera,rock,1975,145",
            "Daft Punk,One More Time,Discovery,house,2001,123",
        ]
    )
    result = parse_csv(content)

    assert result.success_count == 3
    assert result.error_count == 1
    assert result.total_count == 4
    assert result.errors[0].startswith("Row 3:")
    assert "Missing both" in result.errors[0]
    assert [e.row_number for e in result.entries] == [2, 4, 5]
    _assert_tally(result)


def test_missing_required_fields() -> None:
    result = parse_csv('Artist Name(s),Track Name,Album Name\n,,"Abbey Road"')
    assert result.success_count == 0
    assert result.error_count == 1
    assert len(result.entries) == 0
    assert "Missing both" in result.errors[0]


def test_whitespace_only_names_count_as_missing() -> None:
    result = parse_csv("Artist Name(s),Track Name\n  ,   ")
    assert result.error_count == 1


def test_only_track_name() -> None:
    result = parse_csv("Artist Name(s),Track Name,Album Name\n,Hey Jude,Abbey Road")
    assert result.entries[0].search_query == "Hey Jude"
    assert result.entries[0].metadata.artist_names is None


def test_only_artist_name() -> None:
    result = parse_csv("Artist Name(s),Track Name,Album Name\nThe Beatles,,Abbey Road")
    assert result.entries[0].search_query == "The Beatles"


def test_missing_optional_columns() -> None:
    result = parse_csv("Artist Name(s),Track Name\nThe Beatles,Hey Jude")
    meta = result.entries[0].metadata
    assert meta.album_name is None
    assert meta.artist_genres is None
    assert meta.bpm_tempo is None


def test_blank_lines_are_skipped() -> None:
    content = "Artist Name(s),Track Name,Album Name\nThe Beatles,Hey Jude,Abbey Road\n\nQueen,Bohemian Rhapsody,Opera\n"
    result = parse_csv(content)
    assert result.success_count == 2
    assert result.error_count == 0
    assert result.total_count == 2
    assert [e.row_number for e in result.entries] == [2, 3]


def test_short_rows_are_tolerated() -> None:
    result = parse_csv(FULL_HEADER + "\nThe Beatles,Hey Jude")
    assert result.success_count == 1
    assert result.entries[0].metadata.album_release_date is None


def test_quoted_fields_with_special_characters() -> None:
    content = 'Artist Name(s),Track Name,Album Name\nArtist & Band,"Song ""Title"" (Remix)",Greatest Hits'
    result = parse_csv(content)
    assert result.entries[0].metadata.track_name == 'Song "Title" (Remix)'


def test_malformed_row_does_not_abort_batch() -> None:
    content = 'Artist Name(s),Track Name\nGood One,Song A\nBad,"Song"B\nGood Two,Song C\n'
    result = parse_csv(content)

    assert result.success_count == 2
    assert result.error_count == 1
    assert result.errors[0].startswith("Row 3: Failed to parse CSV record")
    assert [e.row_number for e in result.entries] == [2, 4]
    _assert_tally(result)


def test_header_only() -> None:
    result = parse_csv("Artist Name(s),Track Name")
    assert (result.total_count, result.success_count, result.error_count) == (0, 0, 0)


def test_empty_input() -> None:
    result = parse_csv("")
    assert result.total_count == 0


def test_bytes_with_bom() -> None:
    content = "\ufeffArtist Name(s),Track Name\nQueen,Bohemian Rhapsody\n".encode("utf-8")
    result = parse_csv(content)
    assert result.entries[0].metadata.artist_names == "Queen"


def test_malformed_header() -> None:
    with pytest.raises(CsvHeaderError):
        parse_csv('"Artist"x,Track\nA,B')


def test_fuzzy_header_variants() -> None:
    result = parse_csv("Artist,Track_Name,Album-Name\nQueen,Bohemian Rhapsody,Opera")
    meta = result.entries[0].metadata
    assert meta.artist_names == "Queen"
    assert meta.track_name == "Bohemian Rhapsody"
    assert meta.album_name == "Opera"


def test_first_matching_column_wins() -> None:
    result = parse_csv("Artist Name(s),Artists,Track Name\nFirst,Second,Song")
    assert result.entries[0].metadata.artist_names == "First"


def test_csv_metadata_to_track_metadata() -> None:
    result = parse_csv(FULL_HEADER + "\nThe Beatles,Hey Jude,Abbey Road,rock,1968-08-26,140")
    track = result.entries[0].metadata.to_track_metadata()
    assert track.artist == "The Beatles"
    assert track.title == "Hey Jude"
    assert track.album == "Abbey Road"
    assert track.genre == "rock"
    assert track.year == "1968"


def test_normalize_header() -> None:
    assert normalize_header("Artist Name(s)") == "artist_names"
    assert normalize_header("BPM/Tempo") == "bpm_tempo"
    assert normalize_header("Album Release Date") == "album_release_date"
    assert normalize_header('"Track-Name"') == "track_name"


def test_find_column_index_substring_either_way() -> None:
    assert find_column_index(["Artist"], "Artist Name(s)") == 0
    assert find_column_index(["My Track Name"], "Track Name") == 0
    assert find_column_index(["Foo", "Bar"], "Track Name") is None


def test_find_column_index_ignores_empty_headers() -> None:
    assert find_column_index(["", "Track Name"], "Artist Name(s)") is None


def test_validate_headers_all() -> None:
    found = validate_headers(FULL_HEADER + "\nThe Beatles,Hey Jude,Abbey Road,rock,1968,140")
    assert found == list(EXPECTED_HEADERS)


def test_validate_headers_partial() -> None:
    found = validate_headers("Artist,Track,Album,Genres,Release Date,Tempo\nA,B,C,D,E,F")
    assert "Artist Name(s)" in found
    assert "Track Name" in found
    assert "Album Name" in found


def test_validate_headers_none() -> None:
    assert validate_headers("foo,bar\n1,2") == []
