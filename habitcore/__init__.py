"""HabitStreak core library: habit state, day rollover, persistence.

Public API re-exports for convenient imports:
    from habitcore import HabitEngine, today_key, overall_stats, ...
"""

# Workspace & paths
from habitcore.workspace import (
    workspace_root,
    get_user_timezone,
    now_local,
    state_path,
    settings_path,
    hooks_config_path,
)

# Calendar-day keys
from habitcore.daykey import (
    day_key,
    parse_day_key,
    today_key,
    yesterday_key,
    shift_day_key,
    last_n_day_keys,
    display_string,
)

# File I/O
from habitcore.fileio import (
    read_json,
    read_yaml,
    write_json_atomic,
    write_yaml_atomic,
)

# Models
from habitcore.models import (
    DEFAULT_HABIT_TITLES,
    Habit,
    AppState,
)

# Persistence
from habitcore.store import StateStore

# Engine
from habitcore.engine import HabitEngine

# Hooks
from habitcore.hooks import HookDispatcher, HookResult, load_hooks_config, run_hooks

# Statistics
from habitcore.stats import (
    StatsRange,
    HabitStats,
    OverallStats,
    day_keys_in_range,
    overall_stats,
    habit_stats,
    completed_days_in_month,
)
