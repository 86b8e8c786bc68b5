"""
Standard type definitions for database models.

Provides consistent types for on-chain amounts and balances.
"""

from sqlalchemy import DECIMAL

# Chain amount type for transactions and balances
# Precision: 36 digits total, 18 after decimal point
# Suitable for: any ERC-20 / native amount scaled by up to 18 decimals
BigMoneyType = DECIMAL(36, 18)
