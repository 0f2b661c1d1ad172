"""Difficulty curve and spawning constants.

Every difficulty parameter is a stepwise or linear function of the
cumulative score, clamped so that the game stays playable at any score:

    spawn interval  1000ms -> 350ms   (-70ms every 50 points)
    object speed    2      -> 7       (+1 every 100 points)
    object size     60px   -> 18px    (-4px every 50 points)
    hazard chance   8%     -> 25%     (+0.1% per point)
"""

# =============================================================================
# SPAWN INTERVAL
# =============================================================================
BASE_SPAWN_INTERVAL_MS = 1000
SPAWN_INTERVAL_STEP_MS = 70
SPAWN_INTERVAL_SCORE_STEP = 50
MIN_SPAWN_INTERVAL_MS = 350  # Floor: keeps the field from flooding

# =============================================================================
# OBJECT SPEED (pixels per physics tick)
# =============================================================================
BASE_OBJECT_SPEED = 2
OBJECT_SPEED_SCORE_STEP = 100
MAX_OBJECT_SPEED = 7
SPEED_JITTER = 1.0  # Uniform [0, jitter) added per entity at spawn

# =============================================================================
# OBJECT SIZE (pixels)
# =============================================================================
BASE_OBJECT_SIZE = 60
OBJECT_SIZE_STEP = 4
OBJECT_SIZE_SCORE_STEP = 50
MIN_OBJECT_SIZE = 18  # Floor: objects must stay tappable
SIZE_JITTER = 5.0  # Uniform [-jitter, +jitter] added per entity at spawn
MIN_ENTITY_SIZE = 8.0  # Absolute floor after jitter

# =============================================================================
# CATEGORY PROBABILITIES
# =============================================================================
BASE_HAZARD_PROBABILITY = 0.08
HAZARD_PROBABILITY_PER_POINT = 0.001
MAX_HAZARD_PROBABILITY = 0.25  # Normal objects always remain likely
BONUS_PROBABILITY = 0.08
FREEZE_PROBABILITY = 0.05

# =============================================================================
# PLACEMENT
# =============================================================================
SPAWN_SKIP_CHANCE = 0.5  # Chance to skip a due spawn while the field is occupied
MAX_PLACEMENT_ATTEMPTS = 8
