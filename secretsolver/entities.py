class Share:
    """
    One (x, y) sample of the secret polynomial plus a stable identity.
    Shares are read-only once created; the filter only regroups them.
    """

    __slots__ = ("_x", "_y", "_id")

    def __init__(self, x: int, y: int, id: int):
        for name, value in (("x", x), ("y", y), ("id", id)):
            # bool is an int subclass but never a meaningful coordinate
            if not isinstance(value, int) or isinstance(value, bool):
                raise TypeError(f"Share {name} must be an integer, got {value!r}")
        object.__setattr__(self, "_x", x)
        object.__setattr__(self, "_y", y)
        object.__setattr__(self, "_id", id)

    def __setattr__(self, name, value):
        raise AttributeError("Share is immutable")

    def __reduce__(self):
        return (Share, (self._x, self._y, self._id))

    @property
    def x(self):
        return self._x

    @property
    def y(self):
        return self._y

    @property
    def id(self):
        return self._id

    def with_y(self, y: int):
        """Copy of this share carrying a different value (used to simulate tampering)"""
        return Share(self._x, y, self._id)

    def to_dict(self):
        return {"x": self._x, "y": self._y, "id": self._id}

    def __eq__(self, other):
        if not isinstance(other, Share):
            return NotImplemented
        return (self._x, self._y, self._id) == (other._x, other._y, other._id)

    def __hash__(self):
        return hash((self._x, self._y, self._id))

    def __repr__(self):
        return f"Share(x={self._x}, y={self._y}, id={self._id})"


class ClassifiedShares:
    """
    Outcome of majority-vote filtering.
    `secret` is the majority value and `votes` the number of combinations
    that reconstructed it.
    """

    def __init__(self, authentic, rejected, secret, votes,
                 voting_combinations, abstentions, evaluated, total, complete=True):
        self.authentic = frozenset(authentic)
        self.rejected = frozenset(rejected)
        self.secret = secret
        self.votes = votes
        self.voting_combinations = voting_combinations
        self.abstentions = abstentions
        self.evaluated = evaluated
        self.total = total
        self.complete = complete

    def authentic_ids(self):
        return sorted(share.id for share in self.authentic)

    def rejected_ids(self):
        return sorted(share.id for share in self.rejected)

    def to_dict(self):
        return {
            "secret": str(self.secret),
            "authentic": self.authentic_ids(),
            "rejected": self.rejected_ids(),
            "votes": self.votes,
            "voting_combinations": self.voting_combinations,
            "abstentions": self.abstentions,
            "evaluated": self.evaluated,
            "total": self.total,
            "complete": self.complete,
        }

    def __repr__(self):
        return (f"ClassifiedShares(secret={self.secret}, authentic={self.authentic_ids()}, "
                f"rejected={self.rejected_ids()}, votes={self.votes})")
