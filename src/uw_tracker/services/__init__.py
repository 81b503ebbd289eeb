"""Board services: ledger rules, sorting, persistence and orchestration."""
