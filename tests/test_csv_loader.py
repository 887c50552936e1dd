import pytest

from geomatch.domain.models import Event
from geomatch.ingestion.csv_loader import CsvEventSource, CsvFormatError, parse_events_csv
from geomatch.ingestion.events import SourceUnavailableError


def _write(tmp_path, text: str):
    path = tmp_path / "events.csv"
    path.write_text(text, encoding="utf-8")
    return path


def test_load_then_get_returns_parsed_events(tmp_path):
    path = _write(tmp_path, "lat,lon,event_type\n48.8566,2.3522,imp\n40.7589,-73.9851,click\n")
    source = CsvEventSource(path)

    assert source.loaded is False
    assert source.load() == 2
    assert source.loaded is True
    assert source.get() == [
        Event(lat=48.8566, lon=2.3522, type="imp"),
        Event(lat=40.7589, lon=-73.9851, type="click"),
    ]


def test_header_columns_may_come_in_any_order(tmp_path):
    path = _write(tmp_path, "event_type,lon,lat\nclick,2.5,48.0\n")
    assert parse_events_csv(path) == [Event(lat=48.0, lon=2.5, type="click")]


def test_get_returns_a_copy(tmp_path):
    path = _write(tmp_path, "lat,lon,event_type\n1,2,imp\n")
    source = CsvEventSource(path)
    source.load()

    source.get().clear()
    assert len(source.get()) == 1


def test_get_before_load_raises_source_unavailable(tmp_path):
    source = CsvEventSource(tmp_path / "events.csv")
    with pytest.raises(SourceUnavailableError, match="not loaded"):
        source.get()


def test_missing_file_raises_format_error(tmp_path):
    with pytest.raises(CsvFormatError, match="Failed to open CSV file"):
        CsvEventSource(tmp_path / "nope.csv").load()


def test_missing_required_column(tmp_path):
    path = _write(tmp_path, "lat,lon,kind\n1,2,imp\n")
    with pytest.raises(CsvFormatError, match=r"missing: event_type"):
        parse_events_csv(path)


def test_empty_file(tmp_path):
    path = _write(tmp_path, "")
    with pytest.raises(CsvFormatError, match="file is empty"):
        parse_events_csv(path)


def test_invalid_latitude_reports_line_number(tmp_path):
    path = _write(tmp_path, "lat,lon,event_type\n1,2,imp\nnorth,2,imp\n")
    with pytest.raises(CsvFormatError, match=r"Invalid latitude at line 3"):
        parse_events_csv(path)


def test_invalid_longitude_reports_line_number(tmp_path):
    path = _write(tmp_path, "lat,lon,event_type\n1,east,imp\n")
    with pytest.raises(CsvFormatError, match=r"Invalid longitude at line 2"):
        parse_events_csv(path)


def test_wrong_field_count(tmp_path):
    path = _write(tmp_path, "lat,lon,event_type\n1,2,imp,extra\n")
    with pytest.raises(CsvFormatError, match=r"Wrong number of fields at line 2: expected 3, got 4"):
        parse_events_csv(path)


def test_failed_reload_keeps_previous_events(tmp_path):
    path = _write(tmp_path, "lat,lon,event_type\n1,2,imp\n")
    source = CsvEventSource(path)
    source.load()

    path.write_text("lat,lon\n1,2\n", encoding="utf-8")
    with pytest.raises(CsvFormatError):
        source.load()
    assert source.get() == [Event(lat=1, lon=2, type="imp")]


def test_undecodable_bytes_raise_format_error(tmp_path):
    path = tmp_path / "events.csv"
    path.write_bytes(b"lat,lon,event_type\n1,2,\xff\xfe\n")

    with pytest.raises(CsvFormatError, match="Unreadable CSV data") as exc_info:
        CsvEventSource(path).load()
    assert isinstance(exc_info.value.__cause__, UnicodeDecodeError)


def test_out_of_range_coordinates_fail_the_load(tmp_path):
    path = _write(tmp_path, "lat,lon,event_type\n1,2,imp\n95.5,2,click\n")
    with pytest.raises(CsvFormatError, match=r"Invalid event at line 3"):
        CsvEventSource(path).load()
