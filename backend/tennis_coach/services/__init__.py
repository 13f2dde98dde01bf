"""
Scoring Engine Services

Pure scoring logic that:
- Accepts plain roster/match values (see entities.py)
- Returns new values instead of mutating its inputs
- Does NOT depend on HTTP request/response objects
- Does NOT touch the database (match_store.py is the one adapter that does)
"""
