"""Watch a game client's chat log and alert on configured patterns."""

__version__ = "0.1.0"
