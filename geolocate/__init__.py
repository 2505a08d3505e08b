# Location policy
DESIRED_ACCURACY_IN_METERS = 1.0
UPDATE_DISTANCE_IN_METERS = 0.001

# Timing, expressed in clock ticks
POLL_INTERVAL_TICKS = 1
INITIALIZATION_TIMEOUT_TICKS = 5
MAX_CONTINUOUS_UPDATE_DURATION = 60.0
