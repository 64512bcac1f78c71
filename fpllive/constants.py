"""Constants and mappings for the FPL live engine."""

# Upstream API
FPL_API_BASE_URL = 'https://fantasy.premierleague.com/api'
REQUEST_TIMEOUT_SECONDS = 10

# Poll cadence (seconds)
LIVE_POLL_INTERVAL = 30
IDLE_POLL_INTERVAL = 15 * 60

# A fixture counts as live from kickoff until this many hours later
LIVE_WINDOW_HOURS = 2

# element_type -> position
KEEPER = 1
DEFENDER = 2
MIDFIELDER = 3
FORWARD = 4

# Points per goal by position (unknown positions score as forwards)
GOAL_POINTS = {
    KEEPER: 10,
    DEFENDER: 6,
    MIDFIELDER: 5,
    FORWARD: 4,
}
DEFAULT_GOAL_POINTS = 4

# Clean sheet points by position
CLEAN_SHEET_POINTS = {
    KEEPER: 4,
    DEFENDER: 4,
    MIDFIELDER: 1,
    FORWARD: 0,
}

# Event kinds, in the order the rule table evaluates them (fixed set)
EVENT_KINDS = (
    'minutesPlayed',
    'goal',
    'assist',
    'cleanSheet',
    'goalsConceded',
    'save',
    'penaltySave',
    'penaltyMiss',
    'ownGoal',
    'yellowCard',
    'redCard',
    'bonus',
)

# Push notification templates: kind -> (title, body)
NOTIFICATION_TEMPLATES = {
    'goal': ('⚽ Goal!', '{player} scored! ({points} pts)'),
    'assist': ('👟 Assist!', '{player} provided an assist! ({points} pts)'),
    'cleanSheet': ('🧤 Clean Sheet!', '{player} kept a clean sheet! ({points} pts)'),
    'save': ('🧤 Great Save!', '{player} made 3 saves! ({points} pts)'),
    'penaltySave': ('🦸‍♂️ Penalty Save!', '{player} saved a penalty! ({points} pts)'),
    'bonus': ('⭐ Bonus Points!', '{player} earned {points} bonus points!'),
    'minutesPlayed': ('⌚ Minutes Milestone!', '{player} played {minutes} minutes! ({points} pts)'),
    'ownGoal': ('😅 Own Goal', '{player} scored an own goal ({points} pts)'),
    'penaltyMiss': ('😫 Penalty Miss', '{player} missed a penalty ({points} pts)'),
    'redCard': ('🟥 Red Card', '{player} was sent off ({points} pts)'),
    'yellowCard': ('🟨 Yellow Card', '{player} was booked ({points} pts)'),
    'goalsConceded': ('😔 Goals Conceded', '{player} conceded multiple goals ({points} pts)'),
}

DEFAULT_NOTIFICATION_ICON = '/icon-192x192.png'
NOTIFICATION_DATA_TYPE = 'EVENT'

# Web Push statuses meaning the subscription is gone for good
GONE_STATUS_CODES = (404, 410)
