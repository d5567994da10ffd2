"""Routing: custom rewrite rules first, then virtual page matching.

Both are total over their input: no match is ``None``, never an error.
"""
