"""LSPD internal roster: unit memberships and rank permissions."""

import logging

# Azure SDK emits HTTP-level logs at INFO; keep the profile store quiet.
logging.getLogger("azure").setLevel(logging.WARNING)
