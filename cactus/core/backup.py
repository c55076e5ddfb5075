import os
import shutil
from datetime import date, datetime
from pathlib import Path
from cactus.common.logger import log
from cactus.util import today_string

BACKUP_PREFIX = "balance-"

# Day-tier targets. For each tier we keep the backup whose date is closest to (today - tier days), so recent days are
# dense and older ones get progressively sparser.
TIERS = [1, 2, 3, 7, 14, 30, 90]

# Copies the data file into the backup folder once per calendar day, as balance-YYYY-MM-DD.json. An existing backup
# for today counts as done. Never raises, a failed backup must not get in the way of the save that triggered it.
def maybe_backup_daily(src_path: Path, backup_dir: Path, today: date | None = None):
    try:
        day = today_string(today)
        target = Path(backup_dir) / f"{BACKUP_PREFIX}{day}.json"
        if target.exists():
            return None
        Path(backup_dir).mkdir(parents=True, exist_ok=True)
        shutil.copyfile(src_path, target)
        log.info(f"Wrote daily backup '{target}'")
        prune_backups(backup_dir, today)
        return target
    except OSError:
        log.warning(f"Failed to write daily backup of '{src_path}' to '{backup_dir}'", exc_info=True)
        return None

# Extracts the date from a backup's filename, such as balance-2026-02-12.json -> 2/12/2026
def _parse_backup_date(filename):
    base = os.path.splitext(filename)[0]
    if not base.startswith(BACKUP_PREFIX):
        return None
    try:
        return datetime.strptime(base[len(BACKUP_PREFIX):], "%Y-%m-%d").date()
    except ValueError:
        return None

# Use day-tier retention to remove all backups that don't best fit any tier. The newest backup is always kept.
def prune_backups(backup_dir: Path, today: date | None = None):
    backup_dir = Path(backup_dir)
    if not backup_dir.is_dir():
        return

    entries = []
    for path in backup_dir.iterdir():
        if not path.name.endswith(".json"):
            continue
        day = _parse_backup_date(path.name)
        if day is not None:
            entries.append((path.name, day))

    # This means there isn't anything to prune yet.
    if len(entries) <= 1:
        return

    entries.sort(key=lambda e: e[1], reverse=True)
    today = today or date.today()

    keep = {entries[0][0]}
    for tier_days in TIERS:
        best = min(entries, key=lambda e: abs((today - e[1]).days - tier_days))
        keep.add(best[0])

    pruned_count = 0
    for filename, _ in entries:
        if filename not in keep:
            try:
                os.remove(backup_dir / filename)
                pruned_count += 1
            except OSError:
                log.warning(f"Could not prune old backup '{filename}'", exc_info=True)
    if pruned_count > 0:
        log.info(f"Pruned {pruned_count} files from '{backup_dir}'")
