"""Domain layer.

- models: content segments, messages, provider request/result types.
- conversation: request-body parsing and client conversation-state helpers.
- exceptions: business error taxonomy.
"""
