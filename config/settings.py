"""Environment-driven settings."""

import os
from dotenv import load_dotenv

from config.defaults import DEFAULT_PROJECT_CODE, DEFAULT_SITE_NAME

load_dotenv()

# Role switch passcodes. A convenience gate for the shared field tablet, not authentication.
ADMIN_PASSCODE = os.getenv("SFCS_ADMIN_PASSCODE", "1234")
CREATOR_PASSCODE = os.getenv("SFCS_CREATOR_PASSCODE", "3690")

SITE_NAME = os.getenv("SFCS_SITE_NAME", DEFAULT_SITE_NAME)
PROJECT_CODE = os.getenv("SFCS_PROJECT_CODE", DEFAULT_PROJECT_CODE)

LOG_LEVEL = os.getenv("SFCS_LOG_LEVEL", "INFO")

# Seconds between live refreshes of the dashboard
SYNC_REFRESH_SECONDS = float(os.getenv("SFCS_SYNC_REFRESH_SECONDS", "5"))
