"""
QuitCheck - quit-smoking tracker engine

Statistics, milestone achievements and motivational reminders for a
single quit record.
"""

__version__ = "1.0.0"
