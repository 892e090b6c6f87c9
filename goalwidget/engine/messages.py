"""Message pools for the call-to-action line.

Pools are keyed by the string values of the buckets defined in ``cta.py``.
Templates use ``{title}`` (shortened goal title) and ``{label}`` (progress label).
"""

# ---------- Empty (no goals), by time of day ----------
EMPTY = {
    "morning": [
        "Morning! What are we working on today?",
        "Add a goal and let's get moving",
        "Fresh day, empty list. Add something?",
        "One goal is all it takes to start",
        "Set a goal while the coffee brews",
        "What's the plan today? Add it here",
    ],
    "afternoon": [
        "Still nothing on the list. Add a goal?",
        "Afternoon check-in: no goals yet",
        "Add one goal and I'll keep track of it",
        "There's plenty of day left. Add a goal",
        "What do you want to get done? Add it",
        "The list is empty. Your move",
    ],
    "evening": [
        "One goal before bed?",
        "Add something for the rest of the evening",
        "Evening check-in: the list is still empty",
        "Set a small goal to close out the day",
        "Add a goal so tomorrow starts easy",
        "What's one thing worth doing tonight?",
    ],
    "night": [
        "Late night? Set a goal for tomorrow",
        "Future you will thank you. Add tomorrow's goal",
        "Add a goal for the morning, then sleep",
        "Plan tomorrow now, rest easy later",
        "One goal for tomorrow, then lights out",
    ],
}

# ---------- End of day ----------
END_OF_DAY = [
    "Time to wind down. Goals will keep till tomorrow",
    "Bedtime. You can pick this up in the morning",
    "Put the phone down and get some sleep",
    "Rest up, tomorrow's a fresh start",
    "Call it a night",
    "Sleep is a goal too",
]

# ---------- Completed ----------
COMPLETED = {
    "daily": [
        "Done for today. That's a win",
        "Checked off! Nice work",
        "You did it. Same time tomorrow?",
        "That's one more day on the streak",
        "Goal complete. Take the win",
        "Nailed it today",
    ],
    "longTerm": [
        "You finished it. That's huge",
        "A long-term goal, done. Be proud",
        "That took real commitment. Well done",
        "Goal achieved. What's next?",
        "All that work paid off",
        "Finished! That's a big one",
    ],
}

ALL_DAILY_COMPLETE = [
    "Every daily goal done. Enjoy the rest of the day",
    "Today's list is cleared",
    "All done for today. Nothing left to chase",
    "Clean sweep today",
    "You finished everything. Rest earned",
    "Daily goals: all checked off",
]

# ---------- Celebration (mascot celebrating) ----------
CELEBRATION = [
    "You're on a roll, keep it going",
    "Ride the momentum",
    "That's the energy. Don't stop now",
    "Great work. What's next?",
    "You're in the zone",
    "Keep that streak alive",
]

CELEBRATION_TITLE_TEMPLATES = [
    "{title} done. Keep the momentum",
    "Nice work on {title}",
]

# ---------- Urgency level ----------
URGENCY = {
    "low": [
        "You're ahead. Keep it up",
        "Right on track",
        "All good here. Keep going",
        "Nice pace so far",
    ],
    "medium": [
        "Steady progress. Keep at it",
        "A little more today goes a long way",
        "Keep chipping away",
        "You've got time. Use some of it",
    ],
    "high": [
        "Falling behind. Time to catch up",
        "Let's turn this around",
        "A push now keeps you on track",
        "Time to focus up",
    ],
    "critical": [
        "This one needs you now",
        "It's now or never",
        "Don't let this one slip",
        "Drop everything and log some progress",
    ],
}

# ---------- Progress bucket ----------
PROGRESS = {
    "early": [
        "Every goal starts with one step",
        "Get the first bit done",
        "Starting is the hardest part",
    ],
    "mid": [
        "Halfway-ish. Keep rolling",
        "Good progress so far",
        "You're in the thick of it",
    ],
    "nearComplete": [
        "Almost there. Finish it",
        "So close. One more push",
        "The finish line is right there",
    ],
}

# ---------- Time of day ----------
TIME_OF_DAY = {
    "morning": [
        "Start the day strong",
        "Knock it out before lunch",
    ],
    "afternoon": [
        "Afternoon push, let's go",
        "Keep the afternoon productive",
    ],
    "evening": [
        "Finish strong tonight",
        "Last push of the day",
    ],
    "night": [
        "Late, but there's still time",
        "One more before bed",
    ],
}

# ---------- Goal-title templates, by urgency level ----------
TITLE_TEMPLATES = {
    "low": [
        "You're ahead on {title}",
        "{title} is looking good",
    ],
    "medium": [
        "Let's work on {title}",
        "Time for a bit of {title}",
    ],
    "high": [
        "We're behind on {title}. Catch up?",
        "{title} needs some attention",
    ],
    "critical": [
        "{title} can't wait any longer",
        "Do {title} now",
    ],
}

# ---------- Progress-label templates ----------
PROGRESS_LABEL_TEMPLATES = [
    "You're at {label}. Keep going",
    "Progress check: {label}",
    "{label} so far. Don't stop now",
]

# ---------- Long-term focus (shown during focus hours) ----------
LONG_TERM_FOCUS = [
    "Your long-term goal misses you",
    "Log a little progress on the big one",
    "Quick check-in on your long-term goal",
    "Small steps on the big goal still count",
    "Spend ten minutes on the long game",
]
