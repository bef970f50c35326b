"""Routing — route table, location normalization, and matching.

Routes are compiled into an ordered table at startup and may be extended
later; matching never raises for an unknown target.
"""
