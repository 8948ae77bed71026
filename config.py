"""
Central configuration for the DCF scoring core.

All paths, weight bounds, and event definitions defined here.
"""
import os
from pathlib import Path

# Paths (absolute)
BASE_DIR = Path(__file__).parent.absolute()
LOGS_DIR = BASE_DIR / "logs"

# Local policy source (list of classifier records)
POLICY_FILE = Path(os.getenv("SCORING_POLICY_FILE", str(BASE_DIR / "policies.json")))
POLICY_PROVIDER = "local"

# Annotation kind routed to the attestation trust calculator
ATTESTATION_KIND = "attestation"

# Weight bounds (relative importance of an annotation kind)
WEIGHT_MIN = 1
WEIGHT_MAX = 10
DEFAULT_WEIGHT = 1

# Decimal places kept on the final confidence figure
CONFIDENCE_PRECISION = 2

# Event ID definitions (Windows Event Viewer style)
EVENT_IDS = {
    # Scoring events (1001-1999)
    1001: "Score computed",
    1002: "Score computed - zero confidence",

    # Policy events (2001-2999)
    2001: "Classifier not found",
    2002: "Policy record rejected",
    2003: "Policies loaded",

    # System events (4001-4999)
    4001: "Scoring run started",
}

# Logging settings
EVENT_LOG_FILE = LOGS_DIR / "events.jsonl"
