"""Domain services: auth, favorites store, request routing."""
