"""Session timing, scoring and mode constants."""

# =============================================================================
# TIMERS (milliseconds)
# =============================================================================
PHYSICS_INTERVAL_MS = 50
SPAWN_CHECK_INTERVAL_MS = 50
COUNTDOWN_INTERVAL_MS = 1000
WARMUP_MS = 2000  # Hides the "tap the bubbles" hint after this long
FREEZE_DURATION_MS = 4000

# Upper bound on timer firings per advance() call, so a long stall cannot
# turn into an unbounded catch-up burst
MAX_FIRINGS_PER_ADVANCE = 64

# =============================================================================
# SCORING
# =============================================================================
NORMAL_BASE_POINTS = 10
NORMAL_SIZE_SCALE = 0.8
NORMAL_REFERENCE_SIZE = 60  # Objects smaller than this earn more
BONUS_POINTS = 50
HAZARD_PENALTY = 20

# =============================================================================
# MODES
# =============================================================================
UNLIMITED_LIVES = 999
SURVIVAL_LIVES = 3
TIME_ATTACK_SECONDS = 60
