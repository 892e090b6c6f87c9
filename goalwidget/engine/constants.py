"""Tuning constants shared by the urgency, mascot and CTA engines."""

from datetime import timedelta

# Urgency thresholds (also the mascot emotion bands)
URGENCY_HAPPY = 0.2
URGENCY_NEUTRAL = 0.5
URGENCY_WORRIED = 0.8

# Daily goal weights
PROGRESS_WEIGHT = 0.5
TIME_WEIGHT = 0.4
STREAK_WEIGHT = 0.1

STREAK_NORMALIZER_DAYS = 30
STREAK_FACTOR_CAP = 1.0

# Active window of a day for daily goals: [start, end)
DAY_WINDOW_START_HOUR = 6
DAY_WINDOW_END_HOUR = 23

# Long-term goal weights
DEADLINE_WEIGHT = 0.6
LONG_TERM_PROGRESS_WEIGHT = 0.4

# Goals without a deadline never get past "neutral"
UNDATED_URGENCY_CEILING = 0.4

# Mascot
CELEBRATION_DURATION = timedelta(minutes=5)

# Goals completed this recently put the widget in celebration mode
RECENT_COMPLETION_WINDOW = timedelta(minutes=5)

# CTA rotation: one slot per 5 minutes
CTA_ROTATION_MINUTES = 5
CTA_FALLBACK = "Let's go"
CTA_TITLE_MAX_LENGTH = 15
