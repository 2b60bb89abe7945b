"""Operator tools for the reaction role panel."""
