"""Utility functions for taxledger."""

from taxledger.utils.date_parser import parse_date
from taxledger.utils.amount_parser import parse_amount, round_money

__all__ = ["parse_date", "parse_amount", "round_money"]
