"""Courtside: REST backend for pickleball meetups."""
