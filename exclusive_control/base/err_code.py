import enum


class ErrCode(enum.Enum):
    SUCCESS = 0

    # ---------- Caller / descriptor errors (non-retryable) ----------
    INVALID_ARGUMENT = 10        # missing table/version column, bad identifier, condition != primary key
    KEY_NOT_FOUND = 12           # pessimistic lock on a row that has no version row

    # ---------- Concurrency / conflict ----------
    VERSION_CONFLICT = 32        # optimistic lock: stored version differs from the held one

    # ---------- Wiring ----------
    NOT_CONFIGURED = 50          # no LockManager bound for the facade

    UNKNOWN_ERROR = 99
