# ABOUTME: One-pass repair for JSON cut off at the model's output token ceiling.
# ABOUTME: Closes an open string, then at most one ']' and one '}'; no recursion, no retry.

from dataclasses import dataclass


@dataclass(frozen=True)
class RepairState:
    """Delimiter counts for one candidate string."""

    candidate: str
    open_braces: int
    close_braces: int
    open_brackets: int
    close_brackets: int

    @classmethod
    def scan(cls, candidate: str) -> "RepairState":
        return cls(
            candidate=candidate,
            open_braces=candidate.count("{"),
            close_braces=candidate.count("}"),
            open_brackets=candidate.count("["),
            close_brackets=candidate.count("]"),
        )

    @property
    def needs_bracket(self) -> bool:
        return self.open_brackets > self.close_brackets

    @property
    def needs_brace(self) -> bool:
        return self.open_braces > self.close_braces


def repair(candidate: str) -> str:
    """Best-effort close of truncated JSON. Only call after a strict parse has failed.

    Text already ending in '}' is returned as-is (stripped): whatever broke it is not
    truncation and the caller's re-parse will fail again.
    """
    cleaned = candidate.strip()
    if cleaned.endswith("}"):
        return cleaned
    if not cleaned.endswith('"'):
        # Cut inside a string literal.
        cleaned += '"'
    state = RepairState.scan(cleaned)
    if state.needs_bracket:
        cleaned += "]"
    if state.needs_brace:
        cleaned += "}"
    return cleaned
