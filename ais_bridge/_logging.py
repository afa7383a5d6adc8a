# =============================================================================
# AIS Bridge -- Logging
# =============================================================================

import logging

logger = logging.getLogger("ais_bridge")
logger.addHandler(logging.NullHandler())
