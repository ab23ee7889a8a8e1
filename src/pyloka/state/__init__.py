"""Durable state layer.

The onboarding records are the only cross-component mutable state in
pyloka.  This package owns how they are read at startup and written on
every transition.
"""
