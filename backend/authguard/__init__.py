"""Abuse prevention for login, registration and challenge verification."""
