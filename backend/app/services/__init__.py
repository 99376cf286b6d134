"""
Services Layer

League engine logic, independent of FastAPI:
- Pure functions (pairing, slot allocation, score rules, standings) take plain
  inputs and return dataclasses
- Session-backed operations take a Session plus IDs and raise the errors in
  app.services.errors; routes translate those to HTTP responses
"""
