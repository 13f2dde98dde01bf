"""
Scoring engine errors.

Everything raised by the engine derives from ScoringEngineError so routes can
translate engine failures into HTTP responses in one place.
"""


class ScoringEngineError(Exception):
    """Base class for scoring engine failures"""

    pass


class InvalidEntityError(ScoringEngineError, ValueError):
    """Raised when an input entity is missing a required field or is duplicated"""

    def __init__(self, entity: str, field: str, reason: str = "is required"):
        self.entity = entity
        self.field = field
        super().__init__(f"{entity}: '{field}' {reason}")


class BracketConfigError(ScoringEngineError, ValueError):
    """Raised for unknown divisions or impossible position settings"""

    pass


class InvalidResultError(ScoringEngineError, ValueError):
    """Raised when a submitted result cannot be applied"""

    pass


class MatchNotFoundError(ScoringEngineError, LookupError):
    """Raised when a match id is not in the match set"""

    def __init__(self, match_id: str):
        self.match_id = match_id
        super().__init__(f"Match not found: {match_id}")


class MatchAlreadyCompletedError(ScoringEngineError):
    """Raised (strict policy only) when a different result hits a completed match"""

    def __init__(self, match_id: str):
        self.match_id = match_id
        super().__init__(f"Match {match_id} is already completed")


class IncompleteTeamMatchError(ScoringEngineError):
    """Raised when a final winner is requested before every position is played"""

    pass


class InvalidTransitionError(ScoringEngineError):
    """Raised when a match cannot move to the requested state"""

    pass
