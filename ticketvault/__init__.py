"""Ticket issuance, reconciliation and commenting for ledger-backed event tickets."""
