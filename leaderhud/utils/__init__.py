from datetime import datetime, date, timezone
from dateutil import parser as dtparser


def to_utc_naive(ts) -> datetime | None:
	# Convert various timestamp formats to a naive UTC datetime (storage form)
	if ts is None or ts == "":
		return None
	if isinstance(ts, datetime):
		dt = ts
	elif isinstance(ts, date):
		dt = datetime(ts.year, ts.month, ts.day)
	elif isinstance(ts, (int, float)):
		dt = datetime.fromtimestamp(float(ts), tz=timezone.utc)
	else:
		dt = dtparser.parse(str(ts).strip())
	if dt.tzinfo is not None:
		dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
	return dt


def parse_timestamp(ts) -> datetime:
	# Like to_utc_naive, but a missing value is an error
	dt = to_utc_naive(ts)
	if dt is None:
		raise ValueError("timestamp is required")
	return dt


def to_utc_str(ts) -> str | None:
	# ISO string with explicit UTC offset, e.g. for log lines
	dt = to_utc_naive(ts)
	if dt is None:
		return None
	return dt.replace(tzinfo=timezone.utc).isoformat()


def date_key(dt: datetime) -> str:
	# YYYY-MM-DD, the grouping key for daily series and the activity graph
	return dt.date().isoformat()


from .dates import PERIODS, get_date_range, iter_days, start_of_day, end_of_day
from .activity_graph import activity_level, generate_activity_graph_data
from .jsonio import dumps, write_json_atomic, read_json

__all__ = [
	"to_utc_naive",
	"parse_timestamp",
	"to_utc_str",
	"date_key",
	"PERIODS",
	"get_date_range",
	"iter_days",
	"start_of_day",
	"end_of_day",
	"activity_level",
	"generate_activity_graph_data",
	"dumps",
	"write_json_atomic",
	"read_json",
]
