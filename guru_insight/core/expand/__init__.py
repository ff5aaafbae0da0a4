"""Hint token expansion.

Hints in the alert table are stored with frequent phrases replaced by short
``TOK_<name>`` references. Expansion is the only direction supported here;
the token table must stay in step with whatever produced the compressed
hints, which is why it carries a version.
"""
