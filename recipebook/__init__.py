"""
Recipe Book browse service.

Responsibilities:
- Hold the recipe collection and its author/personal tag relations.
- Turn a viewer's filter intent into an immutable predicate set.
- Evaluate predicates into an ordered match set and total count.
- Track the dual-cursor pagination window per browse session.
"""
