"""hellweek-coach: training companion for a 12-week Hell Week preparation program."""

__version__ = "0.1.0"
