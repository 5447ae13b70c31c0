"""CLI module for Providerloop Chains."""
