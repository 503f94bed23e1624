"""Data models for card and event-log records."""

from .card import CardRecord
from .log import LogRecord
