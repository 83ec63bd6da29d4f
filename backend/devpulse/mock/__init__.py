"""Synthetic environment package for DevPulse.

Provides the identity catalog, the pattern-bearing dataset generator, the
named dataset store and the simulated identity/session layer used when the
application mode is MOCK or DEMO.

Contents:
    identities.py          — Static catalog of synthetic GitHub users
    generator.py           — Builds a self-consistent entity graph from parameters
    datasets.py            — Persists, resets, imports and exports named datasets
    identity_simulation.py — Current-identity pointer and mock sessions

Called by: core/interception.py, core/context.py, api/routes/admin.py
Depends on: Faker (generator.py only)
"""
