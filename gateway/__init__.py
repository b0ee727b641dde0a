"""Multimodal generation gateway.

Architectural role:
    Forwards text, image, audio, or document input to a generative model service
    and relays the textual reply.

Composition:
    - `normalizer`: modality inputs -> `payload.ContentPayload`.
    - `llm`: model invocation adapter and transport.
    - `api`: HTTP and terminal entrypoints.
    - `config`, `errors`: shared configuration and error taxonomy.
"""
