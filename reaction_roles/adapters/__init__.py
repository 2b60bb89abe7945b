"""Integration adapters.

Adapters connect the role panel core to external systems. The Discord
adapter translates ``discord.py`` objects into the domain types in
``reaction_roles.models``.
"""
