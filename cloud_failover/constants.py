"""Constants shared across the cloud failover package"""

from datetime import timedelta

CLOUD_PROVIDERS = {
    "AWS": "aws",
    "AZURE": "azure",
    "GCP": "gcp",
    "HETZNER": "hetzner",
}

STATE_FILE_NAME = "f5cloudfailoverstate.json"
STORAGE_FOLDER_NAME = "f5cloudfailover"

# Task state values as written to the shared state record
STATE_SUCCEEDED = "SUCCEEDED"
STATE_FAILED = "FAILED"
STATE_RUNNING = "RUNNING"

RUNNING_TASK_MAX_AGE = timedelta(minutes=10)

# 400 attempts, 3 seconds apart: a 20 minute ceiling
POLL_MAX_ATTEMPTS = 400
POLL_INTERVAL_SECONDS = 3

TRIGGER_PATHS = {
    "tgactive": "/config/failover/tgactive",
    "tgrefresh": "/config/failover/tgrefresh",
}