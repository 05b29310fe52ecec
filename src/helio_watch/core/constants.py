from __future__ import annotations

# Minimum (and default) time between two sun observation passes (seconds of game time)
OBSERVATION_INTERVAL_S: float = 10.0

# Number of patches the star surface is discretized into
DEFAULT_SURFACE_PATCH_COUNT: int = 256

# Observer closer than this to the star centre has no usable direction (km)
DEGENERATE_DISTANCE_KM: float = 1e-9

# Host needs a few seconds after a load before belt visibility can be pushed
FIELD_VISIBILITY_INIT_DELAY_S: float = 5.0

# Gravitational parameter used when a body does not declare one (km^3/s^2)
DEFAULT_MU_KM3_S2: float = 398600.4418
