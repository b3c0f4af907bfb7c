# gsrelay protocol constants (opcodes, sub-opcodes and post styling)

# Inbound opcodes (byte 0 of every packet)
OP_CHAT = 1
OP_PLAYER = 2
OP_MAP_CHANGE = 3
OP_STATUS = 4

# OP_PLAYER sub-opcodes (byte 1)
PLAYER_CONNECTING = 1
PLAYER_CONNECTED = 2
PLAYER_DISCONNECTED = 3

# Minimum packet sizes per opcode
MIN_CHAT_LEN = 4
MIN_PLAYER_LEN = 8

# Fixed field offsets for OP_PLAYER
PLAYER_COLOR_OFFSET = 2
PLAYER_OCCUPIED_OFFSET = 5
PLAYER_CAPACITY_OFFSET = 6
PLAYER_STRINGS_OFFSET = 7

# Reads shorter than this are dropped before decoding.
MIN_READ_LEN = 2

READ_BUFFER_SIZE = 4096
SOCKET_MODE = 0o777
SOCKET_DIR = "/tmp"

# Post colors (r, g, b)
COLOR_WHITE = (255, 255, 255)
COLOR_ONLINE = (0, 255, 0)
COLOR_OFFLINE = (255, 0, 0)
COLOR_MAP_CHANGE = (198, 156, 109)

TITLE_ONLINE = "\N{LARGE GREEN CIRCLE} Server Online"
TITLE_OFFLINE = "\N{LARGE RED CIRCLE} Server Offline"

STEAM_PROFILE_URL = "https://steamcommunity.com/profiles/{steamid64}"
STEAM_SUMMARIES_URL = (
    "https://api.steampowered.com/ISteamUser/GetPlayerSummaries/v0002/"
)
