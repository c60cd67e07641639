from __future__ import annotations


class PoolError(Exception):
    pass


class MalformedRecordError(PoolError):
    """A raw catalog item that cannot become a playable track."""


class SignalFetchError(PoolError):
    pass


class AuthError(SignalFetchError):
    """Credential expired or rejected by the catalog service."""


class TransientError(SignalFetchError):
    """Network failure, rate limit or upstream fault."""


class PoolBuildError(PoolError):
    kind = "PoolBuildError"


class NoUsersRequested(PoolBuildError):
    kind = "NoUsersRequested"


class NoMatchingUsers(PoolBuildError):
    kind = "NoMatchingUsers"


class NoUsableContributions(NoMatchingUsers):
    kind = "NoUsableContributions"
