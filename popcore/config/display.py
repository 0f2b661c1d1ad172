"""Play-field and actor geometry constants."""

# Play-field dimensions in pixels (must match the client canvas)
FIELD_WIDTH = 400
FIELD_HEIGHT = 600

# The frame rate the server-side runner drives the engine at
FRAME_RATE = 30

# Controllable actor (square, anchored to the exit edge of the field)
ACTOR_SIZE = 40.0
ACTOR_MOVE_STEP = 30.0  # Pixels per move command
