"""Account records, store contract, errors and the account service."""
