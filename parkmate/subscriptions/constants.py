ALLOWED_CODE_DURATIONS_DAYS = frozenset({5, 30, 60, 90, 180, 365})
MIN_CODES_PER_BATCH = 1
MAX_CODES_PER_BATCH = 100
MIN_VILLA_COUNT = 1
MAX_VILLA_COUNT = 50
MAX_CODE_GENERATION_ATTEMPTS_PER_CODE = 50

SUBSCRIPTION_TYPE_TRIAL = "trial"
SUBSCRIPTION_TYPE_ACTIVATION_CODE = "activation_code"
SUBSCRIPTION_TYPE_GOOGLE_PLAY = "google_play"

TRIAL_VILLA_LIMIT = 1
STORE_VILLA_LIMIT = 1
NO_SUBSCRIPTION_VILLA_LIMIT = 0

TRIAL_REASON_DEVICE_USED = "Device has already used trial"
TRIAL_REASON_IP_USED = "IP address has already used trial"

USED_CODES_PAGE_SIZE = 50
CODE_SUMMARY_PAGE_SIZE = 50
