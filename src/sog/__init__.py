"""sog: calendar interchange and meeting scheduling for mail/calendar servers."""

__version__ = "0.1.0"
