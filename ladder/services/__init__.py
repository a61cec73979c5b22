"""Services Layer — unit of work, repository, and the lifecycle coordinators.

Invariants:
    - Every coordinator runs its whole read-check-mutate sequence inside one UnitOfWork
    - Coordinators never catch user-facing errors: they abort the transaction and
      reach the caller unchanged

Design Decisions:
    - One coordinator per transition family for locality (join, cancel, match end)
    - LadderService is the only entry point the intake layer uses
"""
