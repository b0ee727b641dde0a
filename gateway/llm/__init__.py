"""Model access package.

Architectural role:
    Provides the adapter and transport used by API layers to invoke the external
    generative model.

Module split:
    - `service`: `ModelAdapter`, the canonical payload-to-text entrypoint.
    - `client`: `generateContent` HTTP transport and response parsing.
"""
