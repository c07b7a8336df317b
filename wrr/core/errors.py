from __future__ import annotations


class PoolError(ValueError):
    """Raised when a pool cannot back a selector."""


class InvalidPoolError(PoolError):
    pass


class InvalidWeightError(PoolError):
    def __init__(self, address: str, weight: object):
        super().__init__(f"invalid weight {weight!r} for endpoint {address!r}")
        self.address = address
        self.weight = weight
