"""Core state, search and persistence logic for tagcurator."""
