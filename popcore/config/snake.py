"""Grid snake configuration constants."""

# Board is GRID_SIZE x GRID_SIZE cells
GRID_SIZE = 20

# One step per tick
SNAKE_TICK_MS = 100

# Segments at session start, laid out leftwards from the centre
INITIAL_LENGTH = 3

# Score per food eaten
FOOD_POINTS = 10

# Random food draws before falling back to scanning free cells
FOOD_PLACEMENT_ATTEMPTS = 32
