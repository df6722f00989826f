"""Apex ledger service: fighter records, earnings and payout processing."""
