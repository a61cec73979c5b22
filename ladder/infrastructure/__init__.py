"""Infrastructure Layer — external service clients and cross-cutting concerns.

Invariants:
    - Dependency arrows point inward: infrastructure may use core/, core never
      imports infrastructure
    - All external calls wrapped with retry/timeout/error mapping

Design Decisions:
    - Resilient wrappers over raw clients: retry policy stays out of the coordinators
"""
