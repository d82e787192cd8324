"""Default Elo constants shared by the rating model, settings and ORM defaults."""

# Rating assigned to every new player
DEFAULT_ELO: int = 1500

# Conventional K-factor for club play
DEFAULT_K_FACTOR: float = 32.0

# Spread factor: a 400 point gap means the favourite is expected to win 10:1
ELO_SCALE: float = 400.0
