"""Student intake test suite.

Test organization:
- form/: field schema, validators in context, state store, dependency rules
  and engine, step controller, normalizer, form session
- unit/: errors, logging, environment, settings, API client, drafts, export, CLI
"""
