"""Building blocks for a group chat bot: reminders, moderation, MIDI ear training and small games."""

__version__ = "0.1.0"