"""Game domain services: room registry, round transitions, scoring and prompts.

This package contains pure(ish) domain logic that should be imported by
socket handlers, keeping transport concerns separated from core game
mechanics.
"""
