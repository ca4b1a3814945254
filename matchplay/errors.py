class RecoverableInputError(ValueError):
    """A single hole write was rejected; nothing else is affected."""


class HoleLockedError(Exception):
    def __init__(self, match_id: str, hole_number: int, reason: str) -> None:
        super().__init__(f"Hole {hole_number} of match {match_id} is locked: {reason}")
        self.match_id = match_id
        self.hole_number = hole_number
        self.reason = reason


class MissingReference(LookupError):
    def __init__(self, kind: str, ref_id: str | None) -> None:
        super().__init__(f"{kind} {ref_id!r} not found")
        self.kind = kind
        self.ref_id = ref_id
