"""Constants for Ping Pong Club"""

# Ping Pong Club
# Copyright (C) 2025  Ping Pong Club developers
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <http://www.gnu.org/licenses/>.

# --- Persistence ---
SAVE_FILE_EXTENSION = ".json"
EXPORT_VERSION = "1.0"

# Collection keys used by the storage port and the export bundle
KEY_PLAYERS = "players"
KEY_DOUBLES = "doubles"
KEY_TEAMS = "teams"
KEY_TOURNAMENTS = "tournaments"
KEY_MATCHES = "matches"
KEY_RULES = "rules"

COLLECTION_KEYS = [
    KEY_PLAYERS,
    KEY_DOUBLES,
    KEY_TEAMS,
    KEY_TOURNAMENTS,
    KEY_MATCHES,
    KEY_RULES,
]

# --- Rule keys ---
RULE_SET_WIN_POINTS = "set_win_points"
RULE_SETS_TO_WIN = "sets_to_win"
RULE_MIN_WIN_MARGIN = "min_win_margin"
RULE_MAX_SET_SCORE = "max_set_score"
RULE_SET_BREAK_MINUTES = "set_break_minutes"
RULE_TIMEOUT_MINUTES = "timeout_minutes"
RULE_MAX_TIMEOUTS = "max_timeouts"
RULE_SERVE_CHANGE_POINTS = "serve_change_points"
RULE_REGISTRATION_LEAD_HOURS = "registration_lead_hours"
RULE_MAX_PARTICIPANTS = "max_participants"

# (key, display name, description, value, category, priority)
DEFAULT_RULES = [
    (
        RULE_SET_WIN_POINTS,
        "Điểm thắng set",
        "Số điểm cần đạt để thắng một set",
        11,
        "scoring",
        1,
    ),
    (
        RULE_SETS_TO_WIN,
        "Số set thắng trận",
        "Số set cần thắng để thắng trận đấu",
        3,
        "match",
        1,
    ),
    (
        RULE_MIN_WIN_MARGIN,
        "Chênh lệch điểm tối thiểu",
        "Chênh lệch điểm tối thiểu để thắng set",
        2,
        "scoring",
        2,
    ),
    (
        RULE_MAX_SET_SCORE,
        "Điểm tối đa một set",
        "Điểm tối đa trong một set khi có deuce",
        21,
        "scoring",
        3,
    ),
    (
        RULE_SET_BREAK_MINUTES,
        "Thời gian nghỉ giữa các set",
        "Thời gian nghỉ giữa các set (phút)",
        1,
        "timing",
        1,
    ),
    (
        RULE_TIMEOUT_MINUTES,
        "Thời gian timeout",
        "Thời gian mỗi lần timeout (phút)",
        1,
        "timing",
        2,
    ),
    (
        RULE_MAX_TIMEOUTS,
        "Số timeout tối đa",
        "Số lần timeout tối đa mỗi trận",
        1,
        "match",
        2,
    ),
    (
        RULE_SERVE_CHANGE_POINTS,
        "Đổi phát bóng",
        "Số điểm trước khi đổi người phát bóng",
        2,
        "serving",
        1,
    ),
    (
        RULE_REGISTRATION_LEAD_HOURS,
        "Bắt buộc đăng ký trước",
        "Số giờ đăng ký trước khi giải đấu bắt đầu",
        24,
        "registration",
        1,
    ),
    (
        RULE_MAX_PARTICIPANTS,
        "Tối đa người tham gia",
        "Số người tham gia tối đa mỗi giải đấu",
        32,
        "tournament",
        1,
    ),
]

DEFAULT_RULE_VALUES = {key: value for key, _, _, value, _, _ in DEFAULT_RULES}

# Rules in these categories cannot be deleted or deactivated
PROTECTED_RULE_CATEGORIES = ("scoring", "match")

# Rules whose value must be at least 1
POSITIVE_RULE_KEYS = (RULE_SET_WIN_POINTS, RULE_SETS_TO_WIN, RULE_MAX_SET_SCORE)

# --- Match defaults ---
DEFAULT_BEST_OF = 5
DEFAULT_WINNING_SCORE = 11
DEFAULT_MIN_WIN_MARGIN = 2
DEFAULT_MAX_SCORE = 21

# --- Standings ---
STANDING_WIN_POINTS = 3
STANDING_DRAW_POINTS = 1
STANDING_LOSS_POINTS = 0

# --- Points engine ---
PLAYER_BASE_POINTS = {
    "singles": 10,
    "doubles": 8,
    "teams": 6,
}

RANK_MULTIPLIERS = {
    "Beginner": 1.0,
    "Intermediate": 1.2,
    "Advanced": 1.5,
    "Professional": 2.0,
}

DOUBLE_BASE_POINTS = 15
TEAM_BASE_POINTS = 20
STRENGTH_MULTIPLIER_MIN = 0.5
STRENGTH_MULTIPLIER_MAX = 2.0

# Upper bounds (exclusive) for each rank tier, lowest first
RANK_THRESHOLDS = [
    ("Beginner", 200),
    ("Intermediate", 500),
    ("Advanced", 1000),
]
TOP_RANK = "Professional"

# Numeric levels used to average a double's rank
RANK_LEVELS = {
    "Beginner": 1,
    "Intermediate": 2,
    "Advanced": 3,
    "Professional": 4,
}

# --- Rosters ---
TEAM_MIN_PLAYERS = 3
TEAM_MAX_PLAYERS = 4

# --- Field validation ---
MIN_NAME_LENGTH = 2
MIN_ADDRESS_LENGTH = 5
MIN_TOURNAMENT_PARTICIPANTS = 2
