"""
Recipe catalog browse engine.

Responsibilities:
- Normalize raw filter input into an immutable FilterSpec.
- Resolve author/personal tag predicates against the right visibility scope.
- Evaluate a FilterSpec into an ordered id list and total count.
- Track header/footer pagination cursors per browse session and emit result windows.
- Encode list-view state as a shareable query string.
"""
