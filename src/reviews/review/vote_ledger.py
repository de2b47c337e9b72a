"""Vote Ledger — the like/dislike state machine for one (review, voter) pair.

    toggle_like:     NONE → LIKED,     LIKED → NONE,     DISLIKED → LIKED
    toggle_dislike:  NONE → DISLIKED,  DISLIKED → NONE,  LIKED → DISLIKED

The transitions are pure; the Review aggregate applies the resulting state
to its vote records and re-derives the helpful count from them.
"""

from enum import Enum


class VoteState(Enum):
    NONE = "None"
    LIKED = "Liked"
    DISLIKED = "Disliked"


_LIKE_TRANSITIONS = {
    VoteState.NONE: VoteState.LIKED,
    VoteState.LIKED: VoteState.NONE,
    VoteState.DISLIKED: VoteState.LIKED,
}

_DISLIKE_TRANSITIONS = {
    VoteState.NONE: VoteState.DISLIKED,
    VoteState.DISLIKED: VoteState.NONE,
    VoteState.LIKED: VoteState.DISLIKED,
}


def toggle_like(state: VoteState) -> VoteState:
    return _LIKE_TRANSITIONS[state]


def toggle_dislike(state: VoteState) -> VoteState:
    return _DISLIKE_TRANSITIONS[state]


def helpful_count(likes, dislikes) -> int:
    """Likes minus dislikes."""
    return len(likes) - len(dislikes)
