"""
Services Layer

Pure business logic services that:
- Accept domain inputs (IDs, sessions, etc.)
- Return domain outputs (models, dicts, etc.)
- Raise matchday.errors exceptions, never HTTPException
- Commit only where the operation owns its unit of work
"""
