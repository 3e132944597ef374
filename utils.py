from datetime import datetime, timedelta, timezone

NOT_AVAILABLE = "NA"
ACTIVE_WINDOW = timedelta(days=7)


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def epoch_to_utc(epoch: int) -> datetime:
    return datetime.fromtimestamp(epoch, tz=timezone.utc)


def iso_date(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).date().isoformat()


def classify_activity(last_accepted_epoch: int | None, now: datetime | None = None) -> tuple[str, bool]:
    """Return the UTC date of the latest AC and whether it falls in the last 7 days."""
    if last_accepted_epoch is None:
        return NOT_AVAILABLE, False
    submitted_at = epoch_to_utc(last_accepted_epoch)
    now = now or now_utc()
    return iso_date(submitted_at), now - submitted_at <= ACTIVE_WINDOW
