"""Gateway API adapter package.

Architectural role:
- Defines the external interaction boundary for HTTP and terminal interfaces.
- Performs transport-level validation, upload storage, and response shaping.
- Delegates payload construction to `gateway.normalizer` and model calls to
  `gateway.llm.service`.

Scope:
- Request lifecycle control for adapter concerns only.
- No direct model transport logic is implemented in this package.
"""
