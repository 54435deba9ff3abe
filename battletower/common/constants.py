# Team size grows by one every GROWTH_INTERVAL wins, up to MAX_TEAM_SIZE
MAX_TEAM_SIZE = 6
GROWTH_INTERVAL = 5

DEFAULT_FORMAT = "gen9battletower"
DEFAULT_LEADERBOARD_SIZE = 10
MAX_LEADERBOARD_SIZE = 50

RENTAL_TEAMS_FILE = "rentalteams.json"
BOT_TEAMS_FILE = "botteams.json"
DATA_FILE = "data.json"
