# backend/fundmonitor/services/constants.py
"""
Centralized constants for the Fund Monitor services.

Single source of truth for the record tags, exclusion rules and thresholds
the calculators share.

Usage:
    from fundmonitor.services.constants import (
        EXCLUDED_PROJECT_ID,
        ENTRY_OWNERSHIP_TYPES,
        ZERO,
    )
"""

from decimal import Decimal


# =============================================================================
# DECIMAL CONSTANTS
# =============================================================================

ZERO: Decimal = Decimal("0")
ONE: Decimal = Decimal("1")
HUNDRED: Decimal = Decimal("100")


# =============================================================================
# RECORD ELIGIBILITY
# =============================================================================

# Ownership rows with this outcome type are cash sweeps, not investments
EXCLUDED_OUTCOME_TYPE: str = "Cash"

# Sentinel project holding residual balances; never a real position
EXCLUDED_PROJECT_ID: str = "Other Assets"

# Market value rows with these asset classes are bookkeeping entries
EXCLUDED_MV_ASSET_CLASSES: frozenset[str] = frozenset({"Flows", "NAV Adjustment", "Cash"})

# Reported when a record carries no asset class
UNKNOWN_ASSET_CLASS: str = "Unknown"
UNKNOWN_OWNERSHIP_TYPE: str = "Unknown"
UNKNOWN_OUTCOME_TYPE: str = "Unknown"


# =============================================================================
# OWNERSHIP & FLOW TYPES
# =============================================================================

OWNERSHIP_ESTABLISHED: str = "Established"
OWNERSHIP_TOP_UP: str = "Top Up"
OWNERSHIP_ALL: str = "All"

# Entry rows: the only ones contributing to weighted entry valuation
ENTRY_OWNERSHIP_TYPES: tuple[str, ...] = (OWNERSHIP_ESTABLISHED, OWNERSHIP_TOP_UP)

# Matched case-insensitively as a substring ("Divested", "Partially Divested")
DIVESTED_MARKER: str = "divested"

FLOW_CAPITAL_CALLED: str = "Capital Called"
FLOW_DISTRIBUTION: str = "Distribution"


# =============================================================================
# ASSET CLASS SPLITS
# =============================================================================

ASSET_CLASS_EQUITY: str = "Equity"
ASSET_CLASS_TOKENS: str = "Tokens"


# =============================================================================
# REPORTING
# =============================================================================

# Positions at or above this MOIC stay visible even outside the Top-N
DEFAULT_HIGH_MOIC_THRESHOLD: Decimal = Decimal("5")

TOTAL_ROW_LABEL: str = "TOTAL"

LONG_TAIL_LABEL_TEMPLATE: str = "Long Tail ({count} positions)"
