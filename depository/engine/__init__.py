"""Depository Engine — Configuration, errors, logging, health, runtime."""
